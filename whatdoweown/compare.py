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

# Slot 0 is the user and is always required, slots 1-3 are friends. A slot is
# active when its identifier was filled in and resolved to a Steam ID. Nothing
# here is cached or shared between comparisons.

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from functools import partial
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence

from . import steam_utils
from .exceptions import (
    NoPrimaryUserException,
    NotEnoughUsersException,
    SteamAPIException,
    SteamBadVanityUrlException,
    SteamUserCouldntGetGamesException,
)
from .identity import resolve_steam_id

MAX_USERS = 4
MIN_USERS = 2

logger = logging.getLogger(__name__)

Library = Mapping[int, Mapping[str, Any]]

def _pad_slots(values: Sequence[Any]) -> List[Any]:
    if len(values) > MAX_USERS:
        raise ValueError("At most {} users can be compared, got {}".format(MAX_USERS, len(values)))
    return list(values) + [None] * (MAX_USERS - len(values))

# Checks the slots before anything is fetched. `present` decides whether a
# slot's value counts as filled in.
def _check_slots(slots: Sequence[Any], present: Callable[[Any], bool]) -> List[int]:
    if not present(slots[0]):
        raise NoPrimaryUserException()
    active = [slot for slot, value in enumerate(slots) if present(value)]
    if len(active) < MIN_USERS:
        raise NotEnoughUsersException(len(active))
    return active

def _game_name(game: Optional[Mapping[str, Any]]) -> Optional[str]:
    return game.get("name") if game else None

# Runs every call on its own thread
#
# Returns: The results in call order
#
# The first call to raise aborts the batch. Calls that haven't started yet are
# cancelled and the exception is re-raised.
def _run_in_parallel(calls: Sequence[Callable[[], Any]], thread_name_prefix: str) -> List[Any]:
    if not calls:
        return []

    executor = ThreadPoolExecutor(max_workers=len(calls), thread_name_prefix=thread_name_prefix)
    try:
        futures = [executor.submit(call) for call in calls]
        for future in as_completed(futures):
            future.result()
        return [future.result() for future in futures]
    finally:
        executor.shutdown(wait=False, cancel_futures=True)

def _resolve_slot(slot: int, webkey: str, raw: Optional[str], **kwargs) -> Optional[str]:
    try:
        return resolve_steam_id(webkey, raw, **kwargs)
    except SteamBadVanityUrlException as e:
        e.slot = slot
        logger.warning("Slot %d: could not resolve \"%s\"", slot, raw)
        raise
    except SteamAPIException as e:
        logger.error("Slot %d: Steam API failure while resolving \"%s\": %s", slot, raw, e)
        raise

def _fetch_slot_library(slot: int, webkey: str, steam_id: str, **kwargs) -> Dict[int, Dict[str, Any]]:
    try:
        games = steam_utils.get_owned_steam_games(webkey, steam_id, **kwargs)
    except SteamUserCouldntGetGamesException as e:
        e.slot = slot
        logger.warning("Slot %d: library for Steam ID %s is unavailable: %s", slot, steam_id, e)
        raise
    except SteamAPIException as e:
        logger.error("Slot %d: Steam API failure while fetching library for %s: %s", slot, steam_id, e)
        raise

    logger.debug("Slot %d: Steam ID %s owns %d games", slot, steam_id, len(games))
    return games

def _fetch_names(webkey: str, steam_ids: Sequence[Optional[str]], **kwargs) -> List[Optional[str]]:
    present = [steam_id for steam_id in steam_ids if steam_id]
    try:
        names = steam_utils.get_steam_user_names(webkey, present, **kwargs) if present else {}
    except SteamAPIException as e:
        logger.error("Steam API failure while fetching names for %s: %s", ", ".join(present), e)
        raise
    return [names.get(steam_id, steam_id) if steam_id else None for steam_id in steam_ids]

# Resolves every slot's raw identifier concurrently
#
# Returns: A list of MAX_USERS Steam IDs, None for blank slots
#
# The first unresolvable identifier aborts the whole batch.
def resolve_steam_ids(webkey: str, raw_users: Sequence[Optional[str]], strict: bool = False,
                      connect_timeout: Optional[float] = None, read_timeout: Optional[float] = None) -> List[Optional[str]]:
    slots = _pad_slots(raw_users)
    calls = [
        partial(_resolve_slot, slot, webkey, raw, strict=strict,
                connect_timeout=connect_timeout, read_timeout=read_timeout)
        for slot, raw in enumerate(slots)
    ]
    return _run_in_parallel(calls, "wdwo_resolve")

# Works out which games are shared and which are exclusive
#
# libraries: One entry per slot, None for inactive slots. Each library maps
# integer appids to owned game dicts from steam_utils.get_owned_steam_games.
#
# Returns: Dictionary
# ["shared"]: Games every active slot owns, with "usage_slot0".."usage_slot3"
# ["exclusive_slotN"]: Games only slot N owns, one list per active slot
#
# Games owned by some but not all of the other users are in neither list.
# Names come from the first active slot that has one, then the appid.
#
# Raises NoPrimaryUserException if slot 0 is inactive and
# NotEnoughUsersException if fewer than two slots are active.
def compare_libraries(libraries: Sequence[Optional[Library]]) -> Dict[str, Any]:
    slots = _pad_slots(libraries)
    active = _check_slots(slots, lambda library: library is not None)

    shared_ids = set(slots[active[0]].keys())
    for slot in active[1:]:
        shared_ids &= set(slots[slot].keys())

    shared = []
    for appid in slots[active[0]]:
        if appid not in shared_ids:
            continue
        name = next(
            (_game_name(slots[slot].get(appid)) for slot in active if _game_name(slots[slot].get(appid))),
            str(appid)
        )
        entry = {"id": appid, "name": name}
        for slot, library in enumerate(slots):
            game = library.get(appid) if library is not None else None
            entry["usage_slot%d" % slot] = game.get("playtime", 0) if game else 0
        shared.append(entry)

    result = {"shared": shared}
    for slot in active:
        others = set()
        for other in active:
            if other != slot:
                others.update(slots[other].keys())
        result["exclusive_slot%d" % slot] = [
            {"id": appid, "name": _game_name(game) or str(appid), "usage": game.get("playtime", 0)}
            for appid, game in slots[slot].items()
            if appid not in others
        ]

    return result

# Fetches every active slot's library and screen name, then compares them
#
# Library fetches and the name lookup run concurrently. Any failure aborts
# the comparison, there is no partial result.
def compare_steam_users(webkey: str, steam_ids: Sequence[Optional[str]], include_free_games: bool = False,
                        connect_timeout: Optional[float] = None, read_timeout: Optional[float] = None) -> Dict[str, Any]:
    slots = _pad_slots(steam_ids)
    active = _check_slots(slots, bool)

    timeouts = {"connect_timeout": connect_timeout, "read_timeout": read_timeout}
    calls = [
        partial(_fetch_slot_library, slot, webkey, slots[slot], include_free_games=include_free_games, **timeouts)
        for slot in active
    ]
    calls.append(partial(_fetch_names, webkey, slots, **timeouts))

    results = _run_in_parallel(calls, "wdwo_fetch")
    display_names = results.pop()

    libraries = [None] * MAX_USERS
    for slot, games in zip(active, results):
        libraries[slot] = games

    result = compare_libraries(libraries)
    result["displayNames"] = display_names

    logger.info(
        "Compared %d libraries: %d shared, exclusive %s",
        len(active),
        len(result["shared"]),
        ", ".join("slot%d=%d" % (slot, len(result["exclusive_slot%d" % slot])) for slot in active)
    )
    return result

# Resolves up to four raw identifiers and compares their libraries. Blank or
# missing slots are checked before any request is made to Steam.
def compare_owned_games(webkey: str, raw_users: Sequence[Optional[str]], strict: bool = False, include_free_games: bool = False,
                        connect_timeout: Optional[float] = None, read_timeout: Optional[float] = None) -> Dict[str, Any]:
    _check_slots(_pad_slots(raw_users), lambda raw: raw is not None and bool(raw.strip()))
    steam_ids = resolve_steam_ids(webkey, raw_users, strict, connect_timeout, read_timeout)
    return compare_steam_users(webkey, steam_ids, include_free_games, connect_timeout, read_timeout)
