#!/usr/bin/env python3
"""
Tests for the Steam Web API wrappers in whatdoweown.steam_utils.

Run with:
    python -m pytest tests/test_steam_utils.py
"""
import os
import sys
import unittest
from unittest.mock import patch

import requests
from requests.exceptions import ConnectTimeout, ReadTimeout

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from steam_fakes import make_response, owned_games_payload
from whatdoweown import steam_utils
from whatdoweown.exceptions import (
    SteamAPIException,
    SteamAPITimeoutException,
    SteamBadWebkeyException,
    SteamUserCouldntGetGamesException,
)

STEAM_ID = '76561198000000001'


# ===========================================================================
# normalize_owned_game
# ===========================================================================

class TestNormalizeOwnedGame(unittest.TestCase):

    def test_string_appid_becomes_int(self):
        game = steam_utils.normalize_owned_game({'appid': '620', 'name': 'Portal 2', 'playtime_forever': 30})
        self.assertEqual(game, {'appid': 620, 'name': 'Portal 2', 'playtime': 30})

    def test_missing_playtime_defaults_to_zero(self):
        game = steam_utils.normalize_owned_game({'appid': 620, 'name': 'Portal 2'})
        self.assertEqual(game['playtime'], 0)

    def test_non_numeric_playtime_defaults_to_zero(self):
        game = steam_utils.normalize_owned_game({'appid': 620, 'name': 'Portal 2', 'playtime_forever': 'lots'})
        self.assertEqual(game['playtime'], 0)

    def test_missing_name_is_left_empty(self):
        game = steam_utils.normalize_owned_game({'appid': 620})
        self.assertIsNone(game['name'])

    def test_unusable_appid_returns_none(self):
        self.assertIsNone(steam_utils.normalize_owned_game({'appid': 'abc'}))
        self.assertIsNone(steam_utils.normalize_owned_game({'name': 'No id'}))


# ===========================================================================
# get_owned_steam_games
# ===========================================================================

class TestGetOwnedSteamGames(unittest.TestCase):

    def test_parses_library_keyed_by_int_appid(self):
        payload = owned_games_payload({620: ('Portal 2', 120), 440: ('Team Fortress 2', 0)})
        with patch('requests.get', return_value=make_response(200, payload)):
            games = steam_utils.get_owned_steam_games('KEY', STEAM_ID)
        self.assertEqual(list(games.keys()), [620, 440])
        self.assertEqual(games[620]['playtime'], 120)

    def test_string_and_int_appids_collapse_to_one_key(self):
        payload = {'response': {'game_count': 1, 'games': [{'appid': '620', 'name': 'Portal 2'}]}}
        with patch('requests.get', return_value=make_response(200, payload)):
            games = steam_utils.get_owned_steam_games('KEY', STEAM_ID)
        self.assertIn(620, games)
        self.assertNotIn('620', games)

    def test_empty_library_is_not_an_error(self):
        payload = {'response': {'game_count': 0}}
        with patch('requests.get', return_value=make_response(200, payload)):
            self.assertEqual(steam_utils.get_owned_steam_games('KEY', STEAM_ID), {})

    def test_private_library_raises(self):
        with patch('requests.get', return_value=make_response(200, {'response': {}})):
            with self.assertRaises(SteamUserCouldntGetGamesException) as ctx:
                steam_utils.get_owned_steam_games('KEY', STEAM_ID)
        self.assertEqual(ctx.exception.steam_id, STEAM_ID)

    def test_missing_envelope_raises(self):
        with patch('requests.get', return_value=make_response(200, {})):
            with self.assertRaises(SteamUserCouldntGetGamesException):
                steam_utils.get_owned_steam_games('KEY', STEAM_ID)

    def test_timeout_is_treated_as_unavailable_library(self):
        with patch('requests.get', side_effect=ReadTimeout()):
            with self.assertRaises(SteamUserCouldntGetGamesException) as ctx:
                steam_utils.get_owned_steam_games('KEY', STEAM_ID)
        self.assertEqual(ctx.exception.reason, 'read timeout')

    def test_requests_app_info_and_passes_timeouts(self):
        payload = {'response': {'game_count': 0}}
        with patch('requests.get', return_value=make_response(200, payload)) as mock_get:
            steam_utils.get_owned_steam_games('KEY', STEAM_ID, include_free_games=True,
                                              connect_timeout=2.0, read_timeout=3.0)
        args, kwargs = mock_get.call_args
        self.assertTrue(args[0].endswith('IPlayerService/GetOwnedGames/v0001/'))
        self.assertTrue(args[1]['include_appinfo'])
        self.assertTrue(args[1]['include_played_free_games'])
        self.assertEqual(kwargs['timeout'], (2.0, 3.0))


# ===========================================================================
# Transport errors
# ===========================================================================

class TestSteamTransportErrors(unittest.TestCase):

    def test_403_is_bad_webkey(self):
        with patch('requests.get', return_value=make_response(403)):
            with self.assertRaises(SteamBadWebkeyException):
                steam_utils.resolve_vanity_url('KEY', 'someone')

    def test_500_is_api_exception(self):
        with patch('requests.get', return_value=make_response(500)):
            with self.assertRaises(SteamAPIException) as ctx:
                steam_utils.get_steam_user_names('KEY', [STEAM_ID])
        self.assertEqual(ctx.exception.error_code, 500)

    def test_connection_error_is_api_exception(self):
        with patch('requests.get', side_effect=requests.ConnectionError('refused')):
            with self.assertRaises(SteamAPIException) as ctx:
                steam_utils.resolve_vanity_url('KEY', 'someone')
        self.assertIsNone(ctx.exception.error_code)

    def test_connect_timeout_outside_library_fetch(self):
        with patch('requests.get', side_effect=ConnectTimeout()):
            with self.assertRaises(SteamAPITimeoutException):
                steam_utils.get_steam_user_names('KEY', [STEAM_ID])

    def test_invalid_json_is_api_exception(self):
        with patch('requests.get', return_value=make_response(200, ValueError('bad json'))):
            with self.assertRaises(SteamAPIException):
                steam_utils.resolve_vanity_url('KEY', 'someone')


# ===========================================================================
# resolve_vanity_url / get_steam_user_names
# ===========================================================================

class TestResolveVanityUrl(unittest.TestCase):

    def test_success(self):
        payload = {'response': {'success': 1, 'steamid': STEAM_ID}}
        with patch('requests.get', return_value=make_response(200, payload)):
            self.assertEqual(steam_utils.resolve_vanity_url('KEY', 'someone'), STEAM_ID)

    def test_not_found_returns_none(self):
        payload = {'response': {'success': 42, 'message': 'No match'}}
        with patch('requests.get', return_value=make_response(200, payload)):
            self.assertIsNone(steam_utils.resolve_vanity_url('KEY', 'nobody'))


class TestGetSteamUserNames(unittest.TestCase):

    def test_rekeys_players_by_steam_id(self):
        payload = {'response': {'players': [
            {'steamid': '76561198000000002', 'personaname': 'Bob'},
            {'steamid': STEAM_ID, 'personaname': 'Alice'},
        ]}}
        with patch('requests.get', return_value=make_response(200, payload)):
            names = steam_utils.get_steam_user_names('KEY', [STEAM_ID, '76561198000000002'])
        self.assertEqual(names, {STEAM_ID: 'Alice', '76561198000000002': 'Bob'})

    def test_batches_large_id_lists(self):
        steam_ids = [str(76561198000000000 + i) for i in range(150)]
        payload = {'response': {'players': []}}
        with patch('requests.get', return_value=make_response(200, payload)) as mock_get:
            steam_utils.get_steam_user_names('KEY', steam_ids)
        self.assertEqual(mock_get.call_count, 2)
        batch_sizes = [len(call.args[1]['steamids'].split(',')) for call in mock_get.call_args_list]
        self.assertEqual(batch_sizes, [100, 50])


if __name__ == '__main__':
    unittest.main()
