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
import requests
from requests.exceptions import ConnectTimeout, ReadTimeout
from typing import Any, Dict, Mapping, Optional, Sequence

from .exceptions import (
    SteamAPIException,
    SteamAPITimeoutException,
    SteamBadWebkeyException,
    SteamUserCouldntGetGamesException,
)

api_base = "https://api.steampowered.com/"

# GetPlayerSummaries refuses more than this many ids per request
summaries_batch_size = 100

logger = logging.getLogger(__name__)

# Performs a GET against the Steam Web API and returns the decoded JSON body.
#
# Raises:
#    SteamAPITimeoutException: connect or read timeout
#    SteamBadWebkeyException: Steam answered 403 (bad api key)
#    SteamAPIException: any other non-200 status, an unreachable host, or a body that isn't JSON
def _steam_get(endpoint: str, params: Mapping[str, Any], connect_timeout: Optional[float] = None, read_timeout: Optional[float] = None) -> Any:
    try:
        r = requests.get(
            api_base + endpoint,
            params,
            timeout=(connect_timeout, read_timeout)
        )
    except ConnectTimeout:
        raise SteamAPITimeoutException("connect timeout")
    except ReadTimeout:
        raise SteamAPITimeoutException("read timeout")
    except requests.RequestException as e:
        raise SteamAPIException(None, str(e))

    if r.status_code == 403:
        raise SteamBadWebkeyException()
    elif r.status_code != 200:
        logger.debug("%s returned HTTP %d", endpoint, r.status_code)
        raise SteamAPIException(r.status_code)

    try:
        return r.json()
    except ValueError:
        raise SteamAPIException(r.status_code, "response was not valid JSON")

def _as_minutes(value: Any) -> int:
    if isinstance(value, bool):
        return 0
    try:
        return max(int(value), 0)
    except (TypeError, ValueError):
        return 0

# Converts one raw GetOwnedGames entry into an owned game dict.
# Steam is inconsistent about whether appids arrive as numbers or strings, so
# this is the one place they are turned into ints. Returns None for entries
# without a usable appid.
def normalize_owned_game(game: Mapping[str, Any]) -> Optional[Dict[str, Any]]:
    try:
        appid = int(game["appid"])
    except (KeyError, TypeError, ValueError):
        return None

    name = game.get("name")
    return {
        "appid": appid,
        "name": name if isinstance(name, str) and name else None,
        "playtime": _as_minutes(game.get("playtime_forever", 0)),
    }

# Resolves a vanity url name into a Steam ID
#
# Returns: The Steam ID as a 17-digit string, or None if Steam has no user
# with that vanity url (or answered with anything other than a success).
def resolve_vanity_url(webkey: str, vanity_url: str, connect_timeout: Optional[float] = None, read_timeout: Optional[float] = None) -> Optional[str]:
    data = _steam_get(
        "ISteamUser/ResolveVanityURL/v0001/",
        {"key": webkey, "vanityurl": vanity_url, "format": "json"},
        connect_timeout, read_timeout
    )

    response = data.get("response") if isinstance(data, dict) else None
    if not isinstance(response, dict):
        return None
    if response.get("success") == 1 and response.get("steamid"):
        return str(response["steamid"])
    return None

# Fetch the games that a user owns
#
# Returns: Dictionary of owned games in the order Steam listed them, keyed by
# integer appid. Each value is a dict:
# ["appid"]: The Steam app ID (integer)
# ["name"]: The game's name, or None if Steam didn't send one
# ["playtime"]: Total minutes played (integer, 0 if missing)
#
# An empty dictionary means the user has a visible but empty library. A
# response without "game_count" means the library is hidden, and raises
# SteamUserCouldntGetGamesException, as does a timeout.
def get_owned_steam_games(webkey: str, steamid: str, include_free_games: bool = False, connect_timeout: Optional[float] = None, read_timeout: Optional[float] = None) -> Dict[int, Dict[str, Any]]:
    try:
        data = _steam_get(
            "IPlayerService/GetOwnedGames/v0001/",
            {
                "key": webkey,
                "steamid": steamid,
                "include_appinfo": True,
                "include_played_free_games": include_free_games,
                "format": "json"
            },
            connect_timeout, read_timeout
        )
    except SteamAPITimeoutException as e:
        raise SteamUserCouldntGetGamesException(steamid, reason=e.detail)

    response = data.get("response") if isinstance(data, dict) else None
    if not isinstance(response, dict) or "game_count" not in response:
        raise SteamUserCouldntGetGamesException(steamid)

    games = {}
    for raw_game in response.get("games") or []:
        game = normalize_owned_game(raw_game) if isinstance(raw_game, dict) else None
        if game is None:
            logger.warning("Dropped an owned game entry with no usable appid for Steam ID %s", steamid)
            continue
        games[game["appid"]] = game

    return games

# Fetch the screen names of a list of Steam users
#
# Returns: Dictionary of Steam ID (string) to screen name. Users that Steam
# didn't return are left out, so callers must handle missing ids.
def get_steam_user_names(webkey: str, steamids: Sequence[str], connect_timeout: Optional[float] = None, read_timeout: Optional[float] = None) -> Dict[str, str]:
    names = {}
    unique_ids = list(dict.fromkeys(str(steamid) for steamid in steamids))

    for start in range(0, len(unique_ids), summaries_batch_size):
        batch = unique_ids[start:start + summaries_batch_size]
        data = _steam_get(
            "ISteamUser/GetPlayerSummaries/v0002/",
            {"key": webkey, "steamids": ",".join(batch), "format": "json"},
            connect_timeout, read_timeout
        )

        response = data.get("response") if isinstance(data, dict) else None
        players = response.get("players") if isinstance(response, dict) else None
        for player in players or []:
            if not isinstance(player, dict) or "steamid" not in player:
                continue
            name = player.get("personaname")
            if name:
                names[str(player["steamid"])] = name

    return names
