from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class Question:
    id: int
    category: str
    text: str


QUESTIONS: tuple[Question, ...] = (
    Question(1, "Climate", "Do you enjoy warm weather all year round?"),
    Question(2, "Climate", "Would you be happy with snowy winters?"),
    Question(3, "Lifestyle", "Do you prefer the energy of a big city over a quiet town?"),
    Question(4, "Lifestyle", "Is a lively nightlife important to you?"),
    Question(5, "Cost of Living", "Would you pay more rent to live close to the center?"),
    Question(6, "Cost of Living", "Is a low cost of living a top priority?"),
    Question(7, "Transportation", "Would you rather live without a car?"),
    Question(8, "Transportation", "Do you want a world-class public transit system?"),
    Question(9, "Culture", "Do museums and galleries matter to you?"),
    Question(10, "Culture", "Do you want to live somewhere with a different language?"),
    Question(11, "Food", "Is a diverse food scene a must-have?"),
    Question(12, "Food", "Do you love street food and night markets?"),
    Question(13, "Career", "Are you looking for a booming tech industry?"),
    Question(14, "Career", "Would you move for better job opportunities?"),
    Question(15, "Nature", "Do you want beaches within easy reach?"),
    Question(16, "Nature", "Is access to mountains and hiking important?"),
    Question(17, "Community", "Do you want to live near family and old friends?"),
    Question(18, "Community", "Is an international, expat-friendly community appealing?"),
    Question(19, "Pace", "Do you enjoy a fast-paced, always-on lifestyle?"),
    Question(20, "Pace", "Would you like something happening at all hours?"),
)
