import unittest

from app.modules.emotions.analysis import (
    aggregate_emotions,
    discipline_level,
    filter_trades_by_emotions,
    normalize_tag,
    parse_emotional_state,
    select_aggregation_input,
    tilt_control,
)


class TestParseEmotionalState(unittest.TestCase):
    def test_handles_null_list_and_json_string(self):
        self.assertEqual(parse_emotional_state(None), [])
        self.assertEqual(parse_emotional_state(["confident", " Patient "]), ["CONFIDENT", "PATIENT"])
        self.assertEqual(parse_emotional_state('["FOMO","tilt"]'), ["FOMO", "TILT"])
        self.assertEqual(parse_emotional_state('"calm"'), ["CALM"])

    def test_handles_postgres_array_literal_and_plain_string(self):
        self.assertEqual(parse_emotional_state("{CONFIDENT,ANXIOUS}"), ["CONFIDENT", "ANXIOUS"])
        self.assertEqual(parse_emotional_state("greedy"), ["GREEDY"])

    def test_drops_unknown_blank_and_duplicate_tags(self):
        self.assertEqual(parse_emotional_state(["Confident", "", "happy", "CONFIDENT", 7]), ["CONFIDENT"])
        self.assertEqual(parse_emotional_state("   "), [])

    def test_normalization_is_idempotent(self):
        once = parse_emotional_state(["fomo", "Revenge"])
        self.assertEqual(parse_emotional_state(once), once)
        self.assertEqual(normalize_tag(normalize_tag(" overrisk ")), "OVERRISK")

    def test_custom_vocabulary(self):
        self.assertEqual(normalize_tag("bored", ["BORED"]), "BORED")
        self.assertIsNone(normalize_tag("fomo", ["BORED"]))


class TestAggregateEmotions(unittest.TestCase):
    def test_two_trade_scenario(self):
        trades = [
            {"pnl": 500, "emotional_state": ["CONFIDENT"]},
            {"pnl": -300, "emotional_state": ["ANXIOUS", "CONFIDENT"]},
        ]
        counts = {p.subject: p.value for p in aggregate_emotions(trades)}
        self.assertEqual(counts, {"CONFIDENT": 2, "ANXIOUS": 1})

    def test_sum_of_counts_equals_trade_emotion_pairs(self):
        trades = [
            {"side": "Buy", "emotional_state": ["Confident", "Patient"]},
            {"side": "Sell", "emotional_state": '["FOMO"]'},
            {"side": "Buy", "emotional_state": None},
            {"side": "Sell", "emotional_state": ["fomo", "FOMO", "tilt"]},
        ]
        pairs = sum(len(parse_emotional_state(t["emotional_state"])) for t in trades)
        points = aggregate_emotions(trades)
        self.assertEqual(sum(p.value for p in points), pairs)
        self.assertEqual(pairs, 5)

    def test_full_mark_has_minimum_and_headroom(self):
        small = aggregate_emotions([{"emotional_state": ["CALM"]}])
        self.assertEqual(small[0].full_mark, 10)

        many = [{"emotional_state": ["CALM"]} for _ in range(20)]
        self.assertAlmostEqual(aggregate_emotions(many)[0].full_mark, 24.0)

    def test_leaning_from_buy_sell_split(self):
        trades = (
            [{"side": "Buy", "emotional_state": ["FOMO"]}] * 3
            + [{"side": "Sell", "emotional_state": ["FOMO"]}]
            + [{"side": "Sell", "emotional_state": ["REGRET"]}] * 2
            + [{"side": "Buy", "emotional_state": ["CALM"]}, {"side": "Sell", "emotional_state": ["CALM"]}]
        )
        points = {p.subject: p for p in aggregate_emotions(trades)}

        self.assertEqual(points["FOMO"].leaning, "Buy Leaning")
        self.assertEqual(points["FOMO"].side, "Buy")
        self.assertEqual(points["FOMO"].leaning_value, 50.0)
        self.assertEqual(points["REGRET"].leaning, "Sell Leaning")
        self.assertEqual(points["REGRET"].leaning_value, -100.0)
        self.assertEqual(points["CALM"].leaning, "Balanced")
        self.assertEqual(points["CALM"].side, "NULL")

    def test_sorted_by_count_then_name(self):
        trades = [
            {"emotional_state": ["TILT", "CALM"]},
            {"emotional_state": ["TILT"]},
            {"emotional_state": ["ANXIOUS"]},
        ]
        self.assertEqual([p.subject for p in aggregate_emotions(trades)], ["TILT", "ANXIOUS", "CALM"])

    def test_empty_input(self):
        self.assertEqual(aggregate_emotions([]), [])
        self.assertEqual(aggregate_emotions([{"emotional_state": None}]), [])

    def test_serializes_with_chart_keys(self):
        point = aggregate_emotions([{"side": "Buy", "emotional_state": ["CALM"]}])[0]
        data = point.model_dump(by_alias=True)
        self.assertIn("fullMark", data)
        self.assertIn("leaningValue", data)
        self.assertEqual(data["subject"], "CALM")


class TestFilterAndConsistency(unittest.TestCase):
    trades = [
        {"id": "1", "emotional_state": ["confident"]},
        {"id": "2", "emotional_state": '["ANXIOUS"]'},
        {"id": "3", "emotional_state": None},
    ]

    def test_filter_matches_any_requested_tag_case_insensitively(self):
        result = filter_trades_by_emotions(self.trades, ["Confident", "anxious"])
        self.assertEqual([t["id"] for t in result], ["1", "2"])

    def test_filter_with_only_unknown_tags_is_empty(self):
        self.assertEqual(filter_trades_by_emotions(self.trades, ["bored", ""]), [])

    def test_unfiltered_view_uses_full_set(self):
        partial = self.trades[:1]
        chosen = select_aggregation_input(self.trades, partial, filters_active=False)
        self.assertIs(chosen, self.trades)
        self.assertEqual(aggregate_emotions(chosen), aggregate_emotions(self.trades))

    def test_filtered_view_uses_filtered_set(self):
        partial = self.trades[:1]
        self.assertIs(select_aggregation_input(self.trades, partial, filters_active=True), partial)


class TestDerivedScores(unittest.TestCase):
    def test_scores_absent_without_tags(self):
        points = aggregate_emotions([{"emotional_state": ["CALM"]}])
        self.assertIsNone(discipline_level(points))
        self.assertIsNone(tilt_control(points))

    def test_scores_from_counts(self):
        trades = [{"emotional_state": ["DISCIPLINE", "TILT"]}] * 3
        points = aggregate_emotions(trades)
        self.assertEqual(discipline_level(points), 30.0)
        self.assertEqual(tilt_control(points), 70.0)


if __name__ == "__main__":
    unittest.main()
