"""
Recommendation history store.

Two files under the data directory:
    recommendations.json    Full recommendations, newest first, one per
                            week id, last 52 weeks
    stock_history.parquet   One row per allocated position per run, last
                            1000 rows

Recommendations are kept as their JSON dict form; the diff and the
dashboard read them as dicts.
"""

import json
import logging
from pathlib import Path
from typing import Any

import pandas as pd

from stockify.core.constants import HISTORY_WEEKS_RETAINED, STOCK_HISTORY_ROWS_RETAINED
from stockify.core.exceptions import StorageError
from stockify.recommendation.models import Recommendation

logger = logging.getLogger(__name__)

RECOMMENDATIONS_FILE = "recommendations.json"
STOCK_HISTORY_FILE = "stock_history.parquet"
FREQUENT_PICKS_COUNT = 10

HISTORY_COLUMNS = [
    "recommendationId",
    "weekId",
    "timestamp",
    "stockCode",
    "stockName",
    "weight",
    "compositeScore",
    "recommendation",
    "priceAtRecommendation",
]


class RecommendationStore:
    """
    File-backed recommendation history keyed by week id.

    Example:
        store = RecommendationStore(settings.db_dir)
        store.save(recommendation)
        latest = store.get_latest()
    """

    def __init__(self, db_dir: Path | str) -> None:
        """
        Initialize the store.

        Args:
            db_dir: Directory holding the history files (created if missing)
        """
        self.db_dir = Path(db_dir)
        self.db_dir.mkdir(parents=True, exist_ok=True)
        self.recommendations_file = self.db_dir / RECOMMENDATIONS_FILE
        self.history_file = self.db_dir / STOCK_HISTORY_FILE

    # -------------------------------------------------------------------------
    # Recommendations
    # -------------------------------------------------------------------------

    def save(self, recommendation: Recommendation | dict[str, Any]) -> str:
        """
        Persist a recommendation and its per-stock history rows.

        A recommendation for the same week replaces the earlier one.

        Args:
            recommendation: Recommendation (or its dict form)

        Returns:
            Recommendation id
        """
        data = (
            recommendation.to_dict()
            if isinstance(recommendation, Recommendation)
            else dict(recommendation)
        )

        recommendations = [
            r for r in self._load_recommendations() if r.get("weekId") != data["weekId"]
        ]
        recommendations.insert(0, data)
        self._write_recommendations(recommendations[:HISTORY_WEEKS_RETAINED])

        self._write_stock_history(data)

        logger.info(f"Saved recommendation {data['id']} to {self.recommendations_file}")
        return data["id"]

    def get_latest(self) -> dict[str, Any] | None:
        """Most recent recommendation, or None."""
        recommendations = self._load_recommendations()
        return recommendations[0] if recommendations else None

    def get_by_week(self, week_id: str) -> dict[str, Any] | None:
        """Recommendation for a week id, or None."""
        for r in self._load_recommendations():
            if r.get("weekId") == week_id:
                return r
        return None

    def get_previous(self, week_id: str) -> dict[str, Any] | None:
        """Most recent recommendation from a week other than week_id."""
        for r in self._load_recommendations():
            if r.get("weekId") != week_id:
                return r
        return None

    def get_history(self, limit: int = 10, offset: int = 0) -> list[dict[str, Any]]:
        """
        Page through stored recommendations, newest first.

        Args:
            limit: Page size
            offset: Entries to skip

        Returns:
            List of {id, weekId, timestamp, marketCondition, data}
        """
        page = self._load_recommendations()[offset : offset + limit]
        return [
            {
                "id": r.get("id"),
                "weekId": r.get("weekId"),
                "timestamp": r.get("timestamp"),
                "marketCondition": r.get("marketCondition"),
                "data": r,
            }
            for r in page
        ]

    # -------------------------------------------------------------------------
    # Per-stock history
    # -------------------------------------------------------------------------

    def load_stock_history(self) -> pd.DataFrame:
        """All per-stock history rows as a DataFrame."""
        if not self.history_file.exists():
            return pd.DataFrame(columns=HISTORY_COLUMNS)
        try:
            return pd.read_parquet(self.history_file)
        except (OSError, ValueError) as e:
            raise StorageError(
                f"Failed to read stock history: {e}", path=str(self.history_file)
            ) from e

    def get_stock_history(self, stock_code: str, limit: int = 20) -> list[dict[str, Any]]:
        """
        History rows for one stock, newest first.

        Args:
            stock_code: NSE (or BSE) code
            limit: Maximum rows

        Returns:
            List of history row dicts
        """
        df = self.load_stock_history()
        df = df[df["stockCode"] == stock_code]
        df = df.sort_values("timestamp", ascending=False, kind="stable")
        return df.head(limit).to_dict(orient="records")

    def get_weight_trend(self, stock_code: str) -> list[dict[str, Any]]:
        """
        Weight, composite and price per week for one stock, oldest first.

        Args:
            stock_code: NSE (or BSE) code

        Returns:
            List of {weekId, weight, compositeScore, priceAtRecommendation}
        """
        df = self.load_stock_history()
        df = df[df["stockCode"] == stock_code]
        df = df.sort_values("timestamp", kind="stable")
        columns = ["weekId", "weight", "compositeScore", "priceAtRecommendation"]
        return df[columns].to_dict(orient="records")

    def get_stats(self) -> dict[str, Any]:
        """
        Summary over the stored history.

        Returns:
            Dict with recommendation count, first/last timestamps and the
            most frequently allocated stocks with their average weight
        """
        recommendations = self._load_recommendations()
        if not recommendations:
            return {
                "totalRecommendations": 0,
                "firstRecommendation": None,
                "lastRecommendation": None,
                "frequentPicks": [],
            }

        df = self.load_stock_history()
        frequent: list[dict[str, Any]] = []
        if not df.empty:
            grouped = df.groupby("stockCode", sort=False)["weight"].agg(["count", "mean"])
            grouped = grouped.sort_values("count", ascending=False, kind="stable")
            frequent = [
                {
                    "stockCode": code,
                    "appearances": int(row["count"]),
                    "avgWeight": float(row["mean"]),
                }
                for code, row in grouped.head(FREQUENT_PICKS_COUNT).iterrows()
            ]

        return {
            "totalRecommendations": len(recommendations),
            "firstRecommendation": recommendations[-1].get("timestamp"),
            "lastRecommendation": recommendations[0].get("timestamp"),
            "frequentPicks": frequent,
        }

    # -------------------------------------------------------------------------
    # File access
    # -------------------------------------------------------------------------

    def _load_recommendations(self) -> list[dict[str, Any]]:
        if not self.recommendations_file.exists():
            return []
        try:
            with open(self.recommendations_file, encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise StorageError(
                f"Failed to read recommendations: {e}", path=str(self.recommendations_file)
            ) from e

        if not isinstance(data, list):
            raise StorageError(
                "Recommendations file must contain a list",
                path=str(self.recommendations_file),
            )
        return data

    def _write_recommendations(self, recommendations: list[dict[str, Any]]) -> None:
        tmp = self.recommendations_file.with_suffix(".json.tmp")
        with open(tmp, "w", encoding="utf-8") as f:
            json.dump(recommendations, f, indent=2, ensure_ascii=False)
        tmp.replace(self.recommendations_file)

    def _write_stock_history(self, data: dict[str, Any]) -> None:
        rows = [
            {
                "recommendationId": data["id"],
                "weekId": data["weekId"],
                "timestamp": data["timestamp"],
                "stockCode": stock.get("nseCode") or stock.get("bseCode") or stock.get("name", ""),
                "stockName": stock.get("name", ""),
                "weight": float(stock.get("weight", 0.0)),
                "compositeScore": float(stock.get("compositeScore", 0.0)),
                "recommendation": stock.get("recommendation", ""),
                "priceAtRecommendation": float(stock.get("currentPrice", 0.0)),
            }
            for stock in data.get("allocation", {}).get("stocks", [])
        ]
        if not rows and not self.history_file.exists():
            return

        existing = self.load_stock_history()
        # A rerun in the same week replaces that week's rows
        existing = existing[existing["weekId"] != data["weekId"]]
        frames = [
            frame
            for frame in (existing, pd.DataFrame(rows, columns=HISTORY_COLUMNS))
            if not frame.empty
        ]
        df = pd.concat(frames, ignore_index=True) if frames else existing

        df = df.tail(STOCK_HISTORY_ROWS_RETAINED).reset_index(drop=True)
        df.to_parquet(self.history_file, index=False)
        logger.debug(f"Stock history now {len(df)} rows")
