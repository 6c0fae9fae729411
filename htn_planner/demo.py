"""Small example domain: a robot that tops up its battery before patrolling."""

from __future__ import annotations

import logging
from typing import Any, Mapping

from .domain import Domain, DomainBuilder

logger = logging.getLogger(__name__)

BATTERY_STEP = 10
FULL_BATTERY = 100


class Charger:
    """Workflow that charges the battery by one step."""

    @staticmethod
    def run(params: Mapping[str, Any]) -> dict:
        logger.info(f"Charging ({dict(params)})")
        return {"charged": BATTERY_STEP}


class Patrol:
    """Workflow that walks a route."""

    @staticmethod
    def run(params: Mapping[str, Any]) -> dict:
        logger.info(f"Patrolling {params.get('route', 'default')}")
        return {"patrolled": params.get("route", "default")}


def battery_not_full(state: Mapping[str, Any]) -> bool:
    return state.get("battery_level", 0) < FULL_BATTERY


def charge_battery(state: Mapping[str, Any]) -> dict:
    updated = dict(state)
    updated["battery_level"] = min(FULL_BATTERY, state.get("battery_level", 0) + BATTERY_STEP)
    return updated


def mark_patrolled(state: Mapping[str, Any]) -> dict:
    return {**state, "patrolled": True}


def charger_domain() -> Domain:
    """
    The single-step charging domain.

    ``root`` charges once; with ``battery_level`` 90 the plan is one Charger
    step leaving the battery at 100, and with 100 the precondition fails.
    """
    return (
        DomainBuilder("charger")
        .compound("root", [{"name": "charge_once", "conditions": [], "subtasks": ["charge"]}])
        .primitive(
            "charge",
            "Charger",
            preconditions=[battery_not_full],
            effects=[charge_battery],
        )
        .allow("Charger", Charger)
        .root("root")
        .build_or_raise()
    )


def patrol_domain() -> Domain:
    """Charge while the battery is low, then patrol; falls back to patrolling directly."""
    return (
        DomainBuilder("patrol")
        .callback("battery_low", lambda s: s.get("battery_level", 0) < 50)
        .compound(
            "be_useful",
            [
                {"name": "recharge_first", "conditions": ["battery_low"], "subtasks": ["charge", "be_useful"]},
                {"name": "patrol", "conditions": [], "subtasks": ["patrol"]},
            ],
        )
        .primitive("charge", "Charger", preconditions=[battery_not_full], effects=[charge_battery])
        .primitive("patrol", (Patrol, {"route": "perimeter"}), effects=[mark_patrolled])
        .allow("Charger", Charger)
        .allow("Patrol", Patrol)
        .root("be_useful")
        .build_or_raise()
    )
