"""
Data-loading helpers for analytics.

Turn engine-owned items and sessions into dataframes.
"""

from __future__ import annotations

from typing import Iterable

import pandas as pd

from recall.sm2.item_state import ReviewItem, ReviewSession
from recall.sm2.constants import PASSING_QUALITY


ITEM_COLUMNS = [
    "id", "subject", "chapter", "difficulty", "type", "status",
    "ease_factor", "interval", "repetitions", "next_review_date",
    "total_reviews", "correct_reviews", "accuracy",
]

SESSION_COLUMNS = [
    "item_id", "quality", "response_time", "date", "subject", "chapter", "correct",
]


def load_items_df(items: Iterable[ReviewItem]) -> pd.DataFrame:
    """
    Load item snapshots into a dataframe (one row per item, insertion order).
    """
    rows = [
        {
            "id": item.id,
            "subject": item.subject,
            "chapter": item.chapter,
            "difficulty": item.difficulty.value,
            "type": item.type,
            "status": item.status.value,
            "ease_factor": item.ease_factor,
            "interval": item.interval,
            "repetitions": item.repetitions,
            "next_review_date": item.next_review_date,
            "total_reviews": item.total_reviews,
            "correct_reviews": item.correct_reviews,
            "accuracy": item.accuracy,
        }
        for item in items
    ]
    if not rows:
        return pd.DataFrame(columns=ITEM_COLUMNS)

    df = pd.DataFrame(rows, columns=ITEM_COLUMNS)
    df["next_review_date"] = pd.to_datetime(df["next_review_date"], utc=True)
    return df


def load_sessions_df(sessions: Iterable[ReviewSession]) -> pd.DataFrame:
    """
    Load review sessions into a dataframe, keeping the log's newest-first order.
    """
    rows = [
        {
            "item_id": s.item_id,
            "quality": s.quality,
            "response_time": s.response_time,
            "date": s.date,
            "subject": s.subject,
            "chapter": s.chapter,
        }
        for s in sessions
    ]
    if not rows:
        return pd.DataFrame(columns=SESSION_COLUMNS)

    df = pd.DataFrame(rows)
    df["date"] = pd.to_datetime(df["date"], utc=True)
    df["correct"] = df["quality"] >= PASSING_QUALITY
    return df[SESSION_COLUMNS].reset_index(drop=True)
