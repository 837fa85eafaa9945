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

import logging
import re
from typing import Optional

from . import steam_utils
from .exceptions import SteamBadVanityUrlException

logger = logging.getLogger(__name__)

steam_id_pattern = re.compile(r"^\d{17}$", re.ASCII)
profile_url_pattern = re.compile(r"/profiles/(\d{17})", re.IGNORECASE | re.ASCII)
vanity_url_pattern = re.compile(r"/id/([^/?#]+)", re.IGNORECASE)
url_prefix_pattern = re.compile(r"^https?://|www\.|steamcommunity\.com/|id/|profiles/", re.IGNORECASE)
url_terminator_pattern = re.compile(r"[/?#]")

# Every individual account SteamID64 starts with this
steam_id_prefix = "7656119"

def vanity_candidate(cleaned: str) -> str:
    match = vanity_url_pattern.search(cleaned)
    if match:
        return match.group(1)
    return url_terminator_pattern.split(url_prefix_pattern.sub("", cleaned))[0]

def looks_like_broken_steam_id(cleaned: str) -> bool:
    return len(cleaned) == 17 and cleaned.startswith(steam_id_prefix) and not steam_id_pattern.match(cleaned)

# Turns whatever a user typed into a slot into a Steam ID
#
# Accepts a 17-digit Steam ID, a profile url (/profiles/<id> or /id/<vanity>)
# or a bare vanity name. Only vanity names cost a request to Steam.
#
# Returns: The Steam ID as a 17-digit string, or None if the input is blank
#
# Raises:
#    SteamBadVanityUrlException: Steam doesn't know the vanity name, or strict
#        mode rejected a malformed Steam ID
#    SteamAPIException: Steam couldn't be reached
def resolve_steam_id(webkey: str, raw: Optional[str], strict: bool = False, connect_timeout: Optional[float] = None, read_timeout: Optional[float] = None) -> Optional[str]:
    if raw is None or not raw.strip():
        return None
    cleaned = raw.strip()

    if steam_id_pattern.match(cleaned):
        return cleaned

    match = profile_url_pattern.search(cleaned)
    if match:
        return match.group(1)

    if strict and looks_like_broken_steam_id(cleaned):
        raise SteamBadVanityUrlException(raw)

    vanity = vanity_candidate(cleaned)
    if not vanity:
        raise SteamBadVanityUrlException(raw)

    logger.debug("Resolving vanity url \"%s\"", vanity)
    steam_id = steam_utils.resolve_vanity_url(webkey, vanity, connect_timeout, read_timeout)
    if steam_id is None:
        raise SteamBadVanityUrlException(raw)
    return steam_id
