from __future__ import annotations

from typing import Tuple

from schemas.scores import ConfusionScores, MatchResult

PERFECT = ConfusionScores(precision=1.0, recall=1.0, f1=1.0)


def precision_recall_f1(tp: int, fp: int, fn: int) -> Tuple[float, float, float]:
    """
    P/R/F1 from confusion counts.
    tp=fp=fn=0 (nothing expected, nothing reported) scores (1, 1, 1): a perfect result, not undefined.
    """
    if tp < 0 or fp < 0 or fn < 0:
        raise ValueError(f"confusion counts must be non-negative (tp={tp}, fp={fp}, fn={fn})")
    if tp == 0 and fp == 0 and fn == 0:
        return (1.0, 1.0, 1.0)
    prec = tp / (tp + fp) if (tp + fp) > 0 else 0.0
    rec = tp / (tp + fn) if (tp + fn) > 0 else 0.0
    f1 = (2 * prec * rec / (prec + rec)) if (prec + rec) > 0 else 0.0
    return (prec, rec, f1)


def score_counts(tp: int, fp: int, fn: int) -> ConfusionScores:
    prec, rec, f1 = precision_recall_f1(tp, fp, fn)
    return ConfusionScores(precision=prec, recall=rec, f1=f1)


def score_match(result: MatchResult) -> ConfusionScores:
    return score_counts(result.true_positives, result.false_positives, result.false_negatives)
