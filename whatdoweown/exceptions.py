# This file is a part of WhatDoWeOwn
# Copyright (C) 2026 WhatDoWeOwn contributors

# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU Affero General Public License as published
# by the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.

# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
# GNU Affero General Public License for more details.

# You should have received a copy of the GNU Affero General Public License
# along with this program.  If not, see <https://www.gnu.org/licenses/>.

from typing import Optional

class SteamUserException(Exception):
    steam_id = None
    slot = None

    def __init__(self, steam_id: str, slot: Optional[int] = None):
        super().__init__(steam_id)
        self.steam_id = steam_id
        self.slot = slot

    def __str__(self):
        return "SteamUserException, An exception occurred with the Steam ID {}".format(self.steam_id)

class SteamUserCouldntGetGamesException(SteamUserException):
    reason = None

    def __init__(self, steam_id: str, slot: Optional[int] = None, reason: Optional[str] = None):
        super().__init__(steam_id, slot)
        self.reason = reason

    def __str__(self):
        message = "SteamUserCouldntGetGamesException, The Steam user with the Steam ID {} is either set to Private or couldn't be reached, and can't have their owned games retrieved".format(self.steam_id)
        if self.reason:
            message += " ({})".format(self.reason)
        return message

class SteamBadVanityUrlException(Exception):
    vanity_url = None
    slot = None

    def __init__(self, vanity_url: str, slot: Optional[int] = None):
        super().__init__(vanity_url)
        self.vanity_url = vanity_url
        self.slot = slot

    def __str__(self):
        return "SteamBadVanityUrlException, The vanity url \"{}\" is not associated with a Steam user".format(self.vanity_url)

class NotEnoughUsersException(Exception):
    user_count = 0

    def __init__(self, user_count: int):
        super().__init__(user_count)
        self.user_count = user_count

    def __str__(self):
        return "NotEnoughUsersException, At least 2 Steam users are required to compare libraries, but {} were given".format(self.user_count)

class NoPrimaryUserException(Exception):
    def __str__(self):
        return "NoPrimaryUserException, The first Steam user is required to compare libraries"

class SteamAPIException(Exception):
    error_code = None

    # error_code is the HTTP status, or None if Steam couldn't be reached at all
    def __init__(self, error_code: Optional[int], detail: Optional[str] = None):
        super().__init__(error_code)
        self.error_code = error_code
        self.detail = detail

    def __str__(self):
        if self.error_code is None:
            return "SteamAPIException, The Steam API could not be reached ({})".format(self.detail)
        return "SteamAPIException, The Steam API returned the error code {}".format(self.error_code)

class SteamAPITimeoutException(SteamAPIException):
    def __init__(self, detail: str):
        super().__init__(None, detail)

    def __str__(self):
        return "SteamAPITimeoutException, The Steam API took too long to respond ({})".format(self.detail)

class SteamBadWebkeyException(SteamAPIException):
    def __init__(self):
        super().__init__(403)

    def __str__(self):
        return "SteamBadWebkeyException, The Steam API rejected the configured web key"
