import re
from typing import List

import numpy as np

from .models import AiDetectionResult

AI_PHRASES = (
    "in conclusion", "it is important to note", "summary of the",
    "delve into", "comprehensive overview", "significant impact",
    "realm of", "landscape of", "it is worth mentioning",
    "cannot be overstated", "plays a crucial role", "fosters a sense of",
    "testament to", "integration of", "leveraging the power of",
    "transformative potential", "paradigm shift", "underscores the importance",
    "aforementioned", "it should be noted", "complex interplay",
    "multifaceted", "nuanced approach", "instrumental in", "pivotal role",
    "rapidly evolving", "ever-changing", "increasingly important",
    "in today's world", "vital aspect", "key component", "fundamental understanding",
    "holistic approach", "synergistic effect", "navigating the complexities",
    "it is essential to", "by and large", "on the other hand", "conversely",
    "furthermore", "moreover", "in addition to", "not only but also",
    "a diverse range of", "wide array of", "plethora of", "myriad of",
    "in the context of", "deep dive", "uncover the nuances",
    "rich tapestry", "vibrant ecosystem", "cornerstone of",
    "beacon of", "testament to the", "harnessing the potential",
    "unlocking the power", "driving force", "game changer",
    "cutting-edge", "state-of-the-art", "seamless integration",
    "robust framework", "dynamic nature", "intricate balance",
    "delicate balance", "double-edged sword", "step in the right direction",
    "pave the way", "dawn of a new era", "uncharted territory",
    "vast potential", "immense possibilities", "stark contrast",
    "notable example", "prime example", "case in point",
    "illuminates the fact", "sheds light on", "brings to the forefront",
    "highlights the need", "emphasizes the importance", "serves as a reminder",
    "testifies to the", "speaks volumes", "bears witness to",
    "stands as a", "remains to be seen", "only time will tell",
)

_SENTENCE_RE = re.compile(r"[^.!?]+[.!?]+")
_WORD_RE = re.compile(r"[a-z]+")

MIN_TEXT_LENGTH = 50
MAX_SCORE = 99


def detect_ai_content(text: str) -> AiDetectionResult:
    """Score how likely ``text`` is machine-generated, from 0 to 99.

    Three signals are summed: AI-typical stock phrases, uniform sentence
    lengths (low coefficient of variation) and low vocabulary diversity
    (type-token ratio).
    """
    if not text or len(text) < MIN_TEXT_LENGTH:
        return AiDetectionResult(score=0, details=["Text too short for analysis"])

    details: List[str] = []
    score = 0

    lowered = text.lower()
    phrase_hits = sum(1 for phrase in AI_PHRASES if phrase in lowered)
    if phrase_hits > 0:
        points = min(70, phrase_hits * 6)
        score += points
        details.append(
            f"Found {phrase_hits} common AI-typical phrases (+{points}%)"
        )

    sentences = _SENTENCE_RE.findall(text)
    if len(sentences) > 5:
        lengths = np.array([len(s.split()) for s in sentences], dtype=float)
        mean = lengths.mean()
        cv = float(lengths.std() / mean) if mean else 0.0
        if cv < 0.38:
            score += 40
            details.append(
                "Extremely low sentence length variance (Robotic structure +40%)"
            )
        elif cv < 0.48:
            score += 25
            details.append("Low sentence variance (+25%)")

    words = _WORD_RE.findall(lowered)
    if len(words) > 50:
        ttr = len(set(words)) / len(words)
        if ttr < 0.40 and len(words) < 800:
            score += 25
            details.append("Low vocabulary diversity (+25%)")
        elif ttr < 0.30:
            score += 40
            details.append("Extremely repetitive vocabulary (+40%)")

    score = min(MAX_SCORE, max(0, score))
    if score < 25:
        details.append("Likely human-written")
    elif score > 65:
        details.append("High probability of AI generation")

    return AiDetectionResult(score=score, details=details)
