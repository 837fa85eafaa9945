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

from flask import Flask, request, jsonify
from werkzeug.exceptions import BadRequest
import json
import logging
import os
from os import path
import traceback

from .compare import MAX_USERS, compare_owned_games
from .exceptions import (
    NoPrimaryUserException,
    NotEnoughUsersException,
    SteamAPIException,
    SteamBadVanityUrlException,
    SteamBadWebkeyException,
    SteamUserCouldntGetGamesException,
)

default_connect_timeout = 5.0
default_read_timeout = 10.0

def load_config():
    root_path = path.dirname(path.dirname(path.abspath(__file__)))
    config_path = os.environ.get("WHATDOWEOWN_CONFIG", path.join(root_path, "config.json"))
    if not path.exists(config_path):
        return {}
    with open(config_path, "r") as config_file:
        return json.load(config_file)

# Non-positive timeouts mean "wait forever", which requests spells as None
def get_timeout(config, key, default):
    timeout = config.get(key, default)
    if timeout is None:
        return None
    try:
        timeout = float(timeout)
    except (TypeError, ValueError):
        raise ValueError("Config value \"%s\" must be a number of seconds, got %r" % (key, timeout))
    if timeout <= 0.0:
        return None
    return timeout

# Pulls the raw identifiers out of a request body
#
# Accepts {"users": [...]} or the positional {"user1": ..., "user4": ...}
# form. Missing slots are blank. Raises BadRequest for anything else.
def parse_raw_users(body):
    if not isinstance(body, dict):
        raise BadRequest("Request body must be a JSON object")

    if "users" in body:
        users = body["users"]
        if not isinstance(users, list):
            raise BadRequest("\"users\" must be a list")
    else:
        users = [body.get("user%d" % (slot + 1)) for slot in range(MAX_USERS)]

    if len(users) > MAX_USERS:
        raise BadRequest("At most %d users can be compared" % MAX_USERS)

    for user in users:
        if user is not None and not isinstance(user, str):
            raise BadRequest("Every user must be a string")

    return users

def create_app(config=None):
    if config is None:
        config = load_config()
    steam_key = config.get("steam-key") or os.environ.get("STEAM_API_KEY", "")
    debug = config.get("debug", config.get("DEBUG", False))
    enable_api_tests = config.get("enable-api-tests", debug)
    strict_steam_ids = config.get("strict-steam-ids", False)
    include_free_games = config.get("include-free-games", False)
    contact_email = config.get("contact-email", "")
    connect_timeout = get_timeout(config, "connect-timeout", default_connect_timeout)
    read_timeout = get_timeout(config, "read-timeout", default_read_timeout)

    app = Flask(__name__)
    app.debug = debug
    app.logger.setLevel(logging.DEBUG if debug else logging.INFO)
    logging.getLogger(__package__).setLevel(logging.DEBUG if debug else logging.INFO)

    if not steam_key:
        app.logger.warning("No Steam API key configured, every comparison will fail")

    app.logger.info("Steam timeouts set to connect=%s read=%s seconds", connect_timeout, read_timeout)

    def error_response(message, errcode, status, **extra):
        return jsonify({"error": message, "errcode": errcode, **extra}), status

    def contact_suffix():
        if contact_email:
            return " Please contact us about this error at " + contact_email
        return ""

    # Errcodes
    # -1: An unknown error occurred
    # 0: No error
    # 1: Received a bad request
    # 2: The first user is missing, or fewer than 2 users were given
    # 3: A vanity url couldn't be resolved. Additional fields: "slot"
    # 4: A user's library is private or unreachable. Additional fields: "slot"
    # 5: Steam API failure. A timeout counts here, except while fetching a
    #    library, where it is reported as errcode 4 for that slot
    @app.route("/api/v1/compare_libraries", methods=["GET", "POST"] if enable_api_tests else ["POST"])
    def compare_libraries_v1():
        if request.method == "GET":
            return jsonify({
                "api_function_name": "compare_libraries",
                "api_version": "v1",
                "api_function_params": [
                    {"name": "users", "type": "list:string", "max_length": MAX_USERS}
                ]
            })

        try:
            raw_users = parse_raw_users(request.get_json(force=True, silent=True))
        except BadRequest as e:
            app.logger.info("Rejected comparison request: %s", e.description)
            return error_response("Received a bad request. " + e.description + ".", 1, 400)

        try:
            result = compare_owned_games(
                steam_key,
                raw_users,
                strict=strict_steam_ids,
                include_free_games=include_free_games,
                connect_timeout=connect_timeout,
                read_timeout=read_timeout
            )
        except NoPrimaryUserException:
            return error_response("Your own Steam profile is required.", 2, 400)
        except NotEnoughUsersException:
            return error_response("At least two valid Steam profiles are required.", 2, 400)
        except SteamBadVanityUrlException as e:
            return error_response("Could not resolve Steam vanity name: %s" % e.vanity_url, 3, 400, slot=e.slot)
        except SteamUserCouldntGetGamesException as e:
            return error_response(
                "Steam library not accessible for %s. Set Game Details privacy to Public." % e.steam_id, 4, 403, slot=e.slot
            )
        except SteamBadWebkeyException:
            app.logger.error("Steam rejected the configured API key")
            return error_response("Site has bad Steam API key." + contact_suffix(), 5, 500)
        except SteamAPIException as e:
            app.logger.error("Steam API failure during comparison: %s", e)
            return error_response("Steam could not be reached. Please try again later.", 5, 502)
        except Exception:
            app.logger.exception("Unexpected error during comparison")
            if debug:
                return error_response(traceback.format_exc(), -1, 500)
            return error_response("An unknown error has occurred", -1, 500)

        return jsonify(result)

    return app
