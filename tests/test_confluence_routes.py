import unittest

from app.modules.confluence.schemas import TradeFilters
from app.modules.confluence.service import ConfluenceService, escape_like
from app.modules.emotions.analysis import aggregate_emotions
from tests.fakes import ApiTestCase, FakeSupabase, TOKEN_B, USER_A, USER_B, make_trade

STRATEGY_ID = "44444444-4444-4444-4444-444444444444"


def _dated(day: int) -> str:
    return f"2024-03-{day:02d}"


class TestConfluenceTrades(ApiTestCase):
    def setUp(self):
        super().setUp()
        self.trades = [
            make_trade(
                symbol="AAPL" if i % 2 else "TSLA",
                side="Buy" if i % 3 else "Sell",
                pnl=100.0 if i % 4 else -40.0,
                trade_date=_dated(i + 1),
                emotional_state=["CONFIDENT"] if i % 5 else '["fomo"]',
            )
            for i in range(25)
        ]
        self.seed("trades", *self.trades)
        self.seed("trades", make_trade(user_id=USER_B, symbol="NVDA"))

    def test_requires_authentication(self):
        self.assertEqual(self.client.get("/api/confluence-trades").status_code, 401)
        self.assertEqual(self.client.get("/api/confluence-stats").status_code, 401)

    def test_second_page_flags(self):
        response = self.client.get("/api/confluence-trades?page=2&limit=10", headers=self.auth_headers())
        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual(len(body["trades"]), 10)
        self.assertEqual(body["totalCount"], 25)
        self.assertEqual(body["currentPage"], 2)
        self.assertEqual(body["totalPages"], 3)
        self.assertTrue(body["hasNextPage"])
        self.assertTrue(body["hasPreviousPage"])

    def test_last_page_and_default_order(self):
        body = self.client.get("/api/confluence-trades?page=3&limit=10", headers=self.auth_headers()).json()
        self.assertEqual(len(body["trades"]), 5)
        self.assertFalse(body["hasNextPage"])

        first = self.client.get("/api/confluence-trades", headers=self.auth_headers()).json()
        dates = [t["trade_date"] for t in first["trades"]]
        self.assertEqual(dates, sorted(dates, reverse=True))
        self.assertEqual(first["currentPage"], 1)
        self.assertFalse(first["hasPreviousPage"])

    def test_page_past_the_end_is_empty(self):
        response = self.client.get("/api/confluence-trades?page=9&limit=10", headers=self.auth_headers())
        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual(body["trades"], [])
        self.assertEqual(body["totalCount"], 25)
        self.assertEqual(body["totalPages"], 3)
        self.assertEqual(body["currentPage"], 9)
        self.assertTrue(body["hasPreviousPage"])
        self.assertFalse(body["hasNextPage"])

    def test_limit_is_capped(self):
        body = self.client.get("/api/confluence-trades?limit=500", headers=self.auth_headers()).json()
        self.assertEqual(body["totalPages"], 1)
        self.assertEqual(len(body["trades"]), 25)

    def test_only_own_trades_are_listed(self):
        body = self.client.get("/api/confluence-trades", headers=self.auth_headers(TOKEN_B)).json()
        self.assertEqual(body["totalCount"], 1)
        self.assertEqual(body["trades"][0]["symbol"], "NVDA")

        mine = self.client.get("/api/confluence-trades?limit=100", headers=self.auth_headers()).json()
        self.assertTrue(all(t["user_id"] == USER_A for t in mine["trades"]))

    def test_pnl_and_side_filters(self):
        profitable = self.client.get(
            "/api/confluence-trades?pnlFilter=profitable&limit=100", headers=self.auth_headers()
        ).json()
        self.assertTrue(profitable["trades"])
        self.assertTrue(all(t["pnl"] > 0 for t in profitable["trades"]))

        sells = self.client.get("/api/confluence-trades?side=sell&limit=100", headers=self.auth_headers()).json()
        expected = sum(1 for t in self.trades if t["side"] == "Sell")
        self.assertEqual(sells["totalCount"], expected)

    def test_lossable_filter(self):
        body = self.client.get(
            "/api/confluence-trades?pnlFilter=lossable&limit=100", headers=self.auth_headers()
        ).json()
        self.assertTrue(body["trades"])
        self.assertTrue(all(t["pnl"] < 0 for t in body["trades"]))
        self.assertEqual(body["totalCount"], sum(1 for t in self.trades if t["pnl"] < 0))

    def test_market_filter_ignores_case(self):
        self.seed(
            "trades",
            make_trade(market="Stock", symbol="MSFT"),
            make_trade(market="crypto", symbol="BTC"),
        )
        stocks = self.client.get(
            "/api/confluence-trades?market=STOCK&limit=100", headers=self.auth_headers()
        ).json()
        self.assertEqual(stocks["totalCount"], 26)
        self.assertNotIn("BTC", [t["symbol"] for t in stocks["trades"]])

        crypto = self.client.get(
            "/api/confluence-trades?market=Crypto&limit=100", headers=self.auth_headers()
        ).json()
        self.assertEqual([t["symbol"] for t in crypto["trades"]], ["BTC"])

    def test_like_wildcards_in_filters_match_literally(self):
        underscore = self.client.get(
            "/api/confluence-trades?market=st_ck&limit=100", headers=self.auth_headers()
        ).json()
        self.assertEqual(underscore["totalCount"], 0)

        percent = self.client.get(
            "/api/confluence-trades?symbol=%25&limit=100", headers=self.auth_headers()
        ).json()
        self.assertEqual(percent["totalCount"], 0)

        self.seed("trades", make_trade(symbol="BRK_B"))
        literal = self.client.get(
            "/api/confluence-trades?symbol=k_b&limit=100", headers=self.auth_headers()
        ).json()
        self.assertEqual([t["symbol"] for t in literal["trades"]], ["BRK_B"])

    def test_sort_by_and_order(self):
        by_pnl = self.client.get(
            "/api/confluence-trades?sortBy=pnl&sortOrder=asc&limit=100", headers=self.auth_headers()
        ).json()
        pnls = [t["pnl"] for t in by_pnl["trades"]]
        self.assertEqual(pnls, sorted(pnls))
        self.assertEqual(pnls[0], -40)

        by_symbol = self.client.get(
            "/api/confluence-trades?sortBy=symbol&sortOrder=desc&limit=100", headers=self.auth_headers()
        ).json()
        symbols = [t["symbol"] for t in by_symbol["trades"]]
        self.assertEqual(symbols, sorted(symbols, reverse=True))
        self.assertEqual(symbols[0], "TSLA")

        oldest = self.client.get(
            "/api/confluence-trades?sortOrder=asc&limit=1", headers=self.auth_headers()
        ).json()
        self.assertEqual(oldest["trades"][0]["trade_date"], "2024-03-01")

    def test_unknown_sort_column_is_rejected(self):
        response = self.client.get("/api/confluence-trades?sortBy=notes", headers=self.auth_headers())
        self.assertEqual(response.status_code, 422)

    def test_symbol_and_date_filters(self):
        body = self.client.get(
            "/api/confluence-trades?symbol=tsl&dateFrom=2024-03-01&dateTo=2024-03-10&limit=100",
            headers=self.auth_headers(),
        ).json()
        expected = [
            t for t in self.trades
            if t["symbol"] == "TSLA" and "2024-03-01" <= t["trade_date"] <= "2024-03-10"
        ]
        self.assertEqual(body["totalCount"], len(expected))

    def test_emotion_filter_is_case_insensitive_and_paginates(self):
        body = self.client.get(
            "/api/confluence-trades?emotionalStates=Fomo&limit=2", headers=self.auth_headers()
        ).json()
        expected = sum(1 for i in range(25) if i % 5 == 0)
        self.assertEqual(body["totalCount"], expected)
        self.assertEqual(len(body["trades"]), 2)
        self.assertTrue(all(t["emotional_state"] == ["FOMO"] for t in body["trades"]))
        self.assertTrue(body["hasNextPage"])

    def test_invalid_pnl_filter_is_rejected(self):
        response = self.client.get("/api/confluence-trades?pnlFilter=maybe", headers=self.auth_headers())
        self.assertEqual(response.status_code, 422)
        self.assertEqual(response.json()["error"], "Invalid request")

    def test_malformed_strategy_filter_returns_server_error(self):
        response = self.client.get("/api/confluence-trades?strategyId=abc", headers=self.auth_headers())
        self.assertEqual(response.status_code, 500)
        self.assertEqual(response.json()["error"], "Failed to fetch trades")


class TestConfluenceStats(ApiTestCase):
    def setUp(self):
        super().setUp()
        self.trades = [
            make_trade(pnl=500, side="Buy", emotional_state=["CONFIDENT"], trade_date="2024-03-04"),
            make_trade(pnl=-300, side="Sell", emotional_state=["ANXIOUS", "confident"], trade_date="2024-03-05",
                       strategy_id=STRATEGY_ID),
            make_trade(pnl=50, side="Buy", emotional_state=None, trade_date="2024-03-05"),
        ]
        self.seed("trades", *self.trades)
        self.seed("trades", make_trade(user_id=USER_B, pnl=9999, emotional_state=["TILT"]))

    def test_unfiltered_stats_match_full_aggregation(self):
        response = self.client.get("/api/confluence-stats", headers=self.auth_headers())
        self.assertEqual(response.status_code, 200)
        body = response.json()

        self.assertFalse(body["filtersActive"])
        self.assertEqual(body["totalTrades"], 3)
        self.assertEqual(body["totalPnL"], 250)
        self.assertEqual(body["winningTrades"], 2)
        self.assertEqual(body["losingTrades"], 1)
        self.assertEqual(body["tradingDays"], 2)

        expected = [p.model_dump(by_alias=True) for p in aggregate_emotions(self.trades)]
        self.assertEqual(body["emotionalData"], expected)
        counts = {p["subject"]: p["value"] for p in body["emotionalData"]}
        self.assertEqual(counts, {"CONFIDENT": 2, "ANXIOUS": 1})

    def test_stats_include_drawdown_series_and_vrating(self):
        body = self.client.get("/api/confluence-stats", headers=self.auth_headers()).json()
        self.assertAlmostEqual(body["expectancy"], 250 / 3)
        self.assertEqual(body["maxDrawdown"], 300)
        self.assertAlmostEqual(body["maxDrawdownPercent"], 60)
        self.assertEqual([p["cumulative"] for p in body["pnlSeries"]], [500, 200, 250])
        self.assertEqual(body["pnlSeries"][0]["date"], "2024-03-04")
        self.assertFalse(body["truncated"])

        vrating = body["vrating"]
        self.assertEqual(vrating["tradeCount"], 3)
        self.assertEqual(vrating["startDate"], "2024-03-04")
        self.assertEqual(vrating["endDate"], "2024-03-05")
        self.assertGreaterEqual(vrating["overallRating"], 0)
        self.assertLessEqual(vrating["overallRating"], 10)
        self.assertEqual(
            set(vrating["categoryScores"]),
            {"profitability", "riskManagement", "consistency", "emotionalDiscipline", "journalingAdherence"},
        )

    def test_filtered_stats(self):
        body = self.client.get("/api/confluence-stats?emotionalStates=ANXIOUS", headers=self.auth_headers()).json()
        self.assertTrue(body["filtersActive"])
        self.assertEqual(body["totalTrades"], 1)
        self.assertEqual(body["totalPnL"], -300)
        self.assertEqual(body["winRate"], 0)

        by_strategy = self.client.get(
            f"/api/confluence-stats?strategyId={STRATEGY_ID}", headers=self.auth_headers()
        ).json()
        self.assertEqual(by_strategy["totalTrades"], 1)

    def test_no_trades(self):
        body = self.client.get("/api/confluence-stats", headers=self.auth_headers(TOKEN_B)).json()
        self.assertEqual(body["totalTrades"], 1)

        self.db.tables["trades"] = []
        empty = self.client.get("/api/confluence-stats", headers=self.auth_headers()).json()
        self.assertEqual(empty["totalTrades"], 0)
        self.assertEqual(empty["emotionalData"], [])
        self.assertIsNone(empty["disciplineLevel"])


class TestConfluenceService(unittest.TestCase):
    def test_fetch_is_capped(self):
        db = FakeSupabase()
        db.tables["trades"] = [make_trade(emotional_state=["CALM"]) for _ in range(8)]
        service = ConfluenceService(db, max_fetch_rows=5)

        stats = service.get_statistics(USER_A, TradeFilters())
        self.assertEqual(stats.total_trades, 5)
        self.assertTrue(stats.truncated)

        page = service.list_trades(USER_A, TradeFilters(emotional_states="calm"), page=1, limit=3)
        self.assertEqual(page.total_count, 5)
        self.assertEqual(len(page.trades), 3)
        self.assertTrue(page.truncated)

    def test_fetch_at_the_cap_is_not_truncated(self):
        db = FakeSupabase()
        db.tables["trades"] = [make_trade(emotional_state=["CALM"]) for _ in range(5)]
        service = ConfluenceService(db, max_fetch_rows=5)

        stats = service.get_statistics(USER_A, TradeFilters())
        self.assertEqual(stats.total_trades, 5)
        self.assertFalse(stats.truncated)
        self.assertFalse(service.list_trades(USER_A, TradeFilters(emotional_states="calm")).truncated)

    def test_escape_like(self):
        self.assertEqual(escape_like("50%_a\\b"), "50\\%\\_a\\\\b")
        self.assertEqual(escape_like("AAPL"), "AAPL")

    def test_filters_active_flag(self):
        self.assertFalse(TradeFilters().is_active)
        self.assertFalse(TradeFilters(symbol="  ", side="").is_active)
        self.assertTrue(TradeFilters(pnl_filter="lossable").is_active)
        self.assertEqual(TradeFilters(emotional_states="fomo, tilt,").emotional_states, ["fomo", "tilt"])


if __name__ == "__main__":
    unittest.main()
