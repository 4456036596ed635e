"""Fixed term lists for conflict/peace signal matching."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Lexicon:
    """Immutable term lists; substitute a different instance to retune matching."""

    violence: tuple[str, ...]
    tension: tuple[str, ...]
    peace: tuple[str, ...]
    humanitarian: tuple[str, ...]
    locations: tuple[str, ...]
    armed_groups: tuple[str, ...]


DEFAULT_LEXICON = Lexicon(
    violence=(
        "kill", "killed", "death", "dead", "murder", "slaughter", "massacre",
        "shoot", "shot", "gun", "weapon", "armed", "bomb", "explosion", "blast",
        "attack", "assault", "raid", "ambush", "strike", "offensive",
        "boko haram", "iswap", "ansaru", "bandit", "terrorist", "insurgent", "militant",
        "kidnap", "abduct", "hostage", "ransom", "captive",
        "rape", "sexual violence", "sgbv", "abuse",
    ),
    tension=(
        "tension", "unrest", "protest", "demonstration", "riot", "clash",
        "conflict", "dispute", "confrontation", "standoff",
        "ethnic", "communal", "sectarian", "religious",
        "farmer", "herder", "land dispute", "boundary",
        "crisis", "emergency", "alert", "warning",
    ),
    peace=(
        "peace", "peaceful", "reconciliation", "dialogue", "negotiation",
        "ceasefire", "truce", "agreement", "treaty", "accord",
        "mediation", "resolution", "settlement", "cooperation",
        "stability", "calm", "de-escalation", "disarmament",
    ),
    humanitarian=(
        "displaced", "refugee", "idp", "camp", "shelter",
        "humanitarian", "aid", "relief", "assistance",
        "food security", "malnutrition", "hunger", "famine",
        "health", "medical", "clinic", "hospital",
        "water", "sanitation", "hygiene",
    ),
    locations=(
        "abuja", "lagos", "kano", "kaduna", "port harcourt", "ibadan", "benin",
        "maiduguri", "jos", "ilorin", "enugu", "aba", "onitsha", "warri",
        "sokoto", "katsina", "zamfara", "borno", "yobe", "adamawa",
        "plateau", "benue", "taraba", "niger", "nasarawa", "kogi",
        "sambisa", "lake chad", "niger delta",
    ),
    armed_groups=(
        "boko haram", "iswap", "ansaru", "ipp", "bandits",
        "fulani", "herders", "farmers", "ipob", "massob",
        "niger delta avengers", "militants", "insurgents",
    ),
)
