import unittest

from regulation_classifier import (
    NO_PARKING,
    PERMIT_ONLY,
    RPP,
    TIME_LIMIT,
    UNKNOWN,
    classify_regulation,
    rpp_areas,
)


class ClassifyRegulationTests(unittest.TestCase):
    def test_no_parking_and_tow_away(self) -> None:
        self.assertEqual(classify_regulation({"regulation": "No Parking Anytime"}), NO_PARKING)
        self.assertEqual(classify_regulation({"regulation": "Tow-Away Zone"}), NO_PARKING)
        self.assertEqual(classify_regulation({"regulation": "TOWAWAY 7-9AM"}), NO_PARKING)

    def test_permit_only_takes_precedence_over_rpp(self) -> None:
        record = {"regulation": "Commercial Loading Zone", "rpparea1": "A"}
        self.assertEqual(classify_regulation(record), PERMIT_ONLY)

    def test_rpp_takes_precedence_over_time_limit(self) -> None:
        record = {"regulation": "Time limited", "rpparea1": "A", "hrlimit": "2"}
        self.assertEqual(classify_regulation(record), RPP)

    def test_time_limit_from_fields_or_text(self) -> None:
        self.assertEqual(classify_regulation({"regulation": "Time limited", "hrlimit": "2"}), TIME_LIMIT)
        self.assertEqual(classify_regulation({"regulation": "2 hr parking"}), TIME_LIMIT)

    def test_unknown(self) -> None:
        self.assertEqual(classify_regulation({"regulation": "Government use"}), UNKNOWN)
        self.assertEqual(classify_regulation({}), UNKNOWN)


class RppAreasTests(unittest.TestCase):
    def test_numbered_areas(self) -> None:
        self.assertEqual(rpp_areas({"rpparea1": "A", "rpparea2": "B", "rpparea3": ""}), ["A", "B"])

    def test_symbol_fallback(self) -> None:
        self.assertEqual(rpp_areas({"rpp_sym": "Q"}), ["Q"])
        self.assertEqual(rpp_areas({}), [])


if __name__ == "__main__":
    unittest.main()
