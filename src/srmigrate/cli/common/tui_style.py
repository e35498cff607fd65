"""Questionary / prompt_toolkit theme for srmigrate.

Questionary uses prompt_toolkit under the hood. This module defines the
styles shared by the rule picker and the overwrite confirmation so every
interactive prompt looks the same.
"""

from __future__ import annotations

from prompt_toolkit.styles import Style

QUESTIONARY_STYLE_SELECT = Style.from_dict(
    {
        "question": "bold ansicyan",
        "answer": "bold ansibrightgreen",
        "pointer": "bold ansibrightgreen",
        "highlighted": "bold ansibrightgreen",
        "selected": "bold ansibrightgreen",
        "checkbox": "ansibrightblack",
        "checkbox-selected": "bold ansibrightgreen",
        "separator": "ansibrightblack",
        "instruction": "ansibrightblack",
        "error": "bold ansired",
        "disabled": "ansibrightblack",
    }
)

QUESTIONARY_STYLE_CONFIRM = Style.from_dict(
    {
        "question": "bold ansiyellow",
        "answer": "bold ansiyellow",
        "pointer": "bold ansiyellow",
        "highlighted": "bold ansiyellow",
        "instruction": "ansibrightblack",
        "error": "bold ansired",
    }
)
