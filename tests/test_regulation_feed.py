import unittest
from unittest.mock import MagicMock, patch

import requests

import regulation_feed
from regulation_feed import BoundingBox, build_viewport_url, fetch_regulation_features

BOUNDS = BoundingBox(north=37.78, south=37.77, east=-122.41, west=-122.43)


def _response(status_code: int = 200, payload=None, text: str = "") -> MagicMock:
    response = MagicMock()
    response.status_code = status_code
    response.text = text
    response.json.return_value = payload
    return response


class BuildViewportUrlTests(unittest.TestCase):
    def test_within_box_query(self) -> None:
        url = build_viewport_url(BOUNDS, limit=10)
        self.assertIn("data.sfgov.org/resource/hi6h-neyh.geojson", url)
        self.assertIn("within_box(shape, 37.78, -122.43, 37.77, -122.41)", url)
        self.assertTrue(url.endswith("$limit=10"))


class FetchRegulationFeaturesTests(unittest.TestCase):
    def setUp(self) -> None:
        regulation_feed.feed_cache.clear()

    def test_live_fetch_then_cache_hit(self) -> None:
        features = [{"type": "Feature", "properties": {"days": "M-F"}, "geometry": None}]
        payload = {"type": "FeatureCollection", "features": features}
        with patch.object(regulation_feed.requests, "get", return_value=_response(payload=payload)) as get:
            first, first_freshness = fetch_regulation_features(BOUNDS, limit=10)
            second, second_freshness = fetch_regulation_features(BOUNDS, limit=10)

        self.assertEqual(first, features)
        self.assertEqual(second, features)
        self.assertEqual(first_freshness["status"], "live")
        self.assertEqual(second_freshness["status"], "cache")
        self.assertTrue(second_freshness["cache_hit"])
        self.assertEqual(get.call_count, 1)

    def test_bare_rows_are_wrapped_as_features(self) -> None:
        with patch.object(regulation_feed.requests, "get", return_value=_response(payload=[{"days": "SA"}])):
            features, _ = fetch_regulation_features(BOUNDS, limit=10)
        self.assertEqual(features, [{"type": "Feature", "properties": {"days": "SA"}, "geometry": None}])

    def test_too_complex_query(self) -> None:
        response = _response(status_code=400, text="Query is too complex")
        with patch.object(regulation_feed.requests, "get", return_value=response):
            features, freshness = fetch_regulation_features(BOUNDS, limit=10)
        self.assertEqual(features, [])
        self.assertEqual(freshness["status"], "too_complex")
        self.assertEqual(regulation_feed.feed_cache.stats()["entries"], 0)

    def test_network_error_degrades_to_unavailable(self) -> None:
        with patch.object(regulation_feed.requests, "get", side_effect=requests.ConnectionError("down")):
            features, freshness = fetch_regulation_features(BOUNDS, limit=10)
        self.assertEqual(features, [])
        self.assertEqual(freshness["status"], "unavailable")

    def test_invalid_json_degrades_to_unavailable(self) -> None:
        response = _response()
        response.json.side_effect = ValueError("not json")
        with patch.object(regulation_feed.requests, "get", return_value=response):
            _, freshness = fetch_regulation_features(BOUNDS, limit=10)
        self.assertEqual(freshness["status"], "unavailable")


if __name__ == "__main__":
    unittest.main()
