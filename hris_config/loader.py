"""
Rate Table Loader (``hris_config.loader``).

Responsibility
--------------
Loads statutory rate table YAML files and parses them into the frozen
``hris_config.schema`` dataclasses.  Also rehydrates the rate snapshot
persisted with a processed payroll period.

Architecture position
---------------------
**Config layer** -- infrastructure tooling.  Runtime callers go through
``hris_config.get_active_rates()``; services use ``parse_rates`` directly
only to rebuild a persisted snapshot.

Invariants enforced
-------------------
* Amounts and rates are parsed to ``Decimal`` via their string form; YAML
  floats never leak into arithmetic.
* Missing keys and non-numeric values raise ``InvalidRateTableError``.
* ``compute_checksum`` is a deterministic SHA-256 of canonical JSON.
* A snapshot carrying a checksum must match its recomputed content.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Structurally bad table  -> ``InvalidRateTableError``.
"""

from __future__ import annotations

import hashlib
import json
from dataclasses import replace
from datetime import date
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any

import yaml

from hris_config.schema import (
    InsuranceSchemeDef,
    StatutoryRates,
    TaxBracketDef,
    TaxReliefDef,
)
from hris_kernel.exceptions import InvalidRateTableError


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
    """
    with open(path) as f:
        return yaml.safe_load(f) or {}


def parse_date(value: Any) -> date:
    """Parse a date from YAML (string or date object)."""
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        return date.fromisoformat(value)
    raise ValueError(f"Cannot parse date from {value!r}")


def parse_decimal(value: Any, field: str) -> Decimal:
    """Parse a YAML scalar into a Decimal through its string form."""
    if isinstance(value, bool) or value is None:
        raise ValueError(f"{field}: expected a number, got {value!r}")
    if isinstance(value, Decimal):
        return value
    try:
        return Decimal(str(value).replace("_", ""))
    except InvalidOperation as exc:
        raise ValueError(f"{field}: expected a number, got {value!r}") from exc


def _optional_decimal(value: Any, field: str) -> Decimal | None:
    if value is None:
        return None
    return parse_decimal(value, field)


def parse_risk_rates(data: Any, code: str) -> tuple[tuple[int, Decimal], ...]:
    """Parse ``{risk_level: rate}`` into pairs ordered by level.

    YAML gives integer keys; a persisted snapshot gives string keys.
    """
    if not data:
        return ()
    if not isinstance(data, dict):
        raise ValueError(f"{code}.employer_risk_rates: expected a mapping, got {data!r}")
    pairs = []
    for level, rate in data.items():
        try:
            level_number = int(level)
        except (TypeError, ValueError) as exc:
            raise ValueError(
                f"{code}.employer_risk_rates: risk level {level!r} is not an integer"
            ) from exc
        pairs.append(
            (level_number, parse_decimal(rate, f"{code}.employer_risk_rates[{level}]"))
        )
    return tuple(sorted(pairs))


def parse_scheme(data: dict[str, Any]) -> InsuranceSchemeDef:
    """Parse an InsuranceSchemeDef from a dict."""
    code = data["code"]
    return InsuranceSchemeDef(
        code=code,
        name=data.get("name", code),
        employee_rate=parse_decimal(data["employee_rate"], f"{code}.employee_rate"),
        employer_rate=parse_decimal(data.get("employer_rate", 0), f"{code}.employer_rate"),
        salary_cap=_optional_decimal(data.get("salary_cap"), f"{code}.salary_cap"),
        employer_risk_rates=parse_risk_rates(data.get("employer_risk_rates"), code),
    )


def parse_bracket(data: dict[str, Any], index: int) -> TaxBracketDef:
    """Parse a TaxBracketDef from a dict."""
    return TaxBracketDef(
        upper_limit=_optional_decimal(data.get("upper_limit"), f"bracket[{index}].upper_limit"),
        rate=parse_decimal(data["rate"], f"bracket[{index}].rate"),
    )


def parse_relief(data: dict[str, Any], index: int) -> TaxReliefDef:
    """Parse a TaxReliefDef from a dict."""
    return TaxReliefDef(
        status=str(data["status"]),
        threshold=parse_decimal(data["threshold"], f"tax_reliefs[{index}].threshold"),
    )


def parse_rates(data: dict[str, Any]) -> StatutoryRates:
    """
    Parse a StatutoryRates table from a dict.

    Accepts both YAML content and a persisted snapshot (``to_dict()``
    output).  When ``data`` carries a ``checksum``, it must match the
    recomputed checksum of the parsed content.

    Raises:
        InvalidRateTableError: on missing keys, non-numeric values or a
            checksum mismatch.
    """
    version = str(data.get("version", "<unversioned>"))
    try:
        rates = StatutoryRates(
            version=version,
            jurisdiction=data["jurisdiction"],
            currency=data.get("currency", "IDR"),
            effective_from=parse_date(data["effective_from"]),
            effective_to=(
                parse_date(data["effective_to"])
                if data.get("effective_to") is not None
                else None
            ),
            period_basis=data.get("period_basis", "monthly"),
            description=data.get("description", "") or "",
            insurance_schemes=tuple(
                parse_scheme(s) for s in data.get("insurance_schemes", [])
            ),
            tax_brackets=tuple(
                parse_bracket(b, i) for i, b in enumerate(data.get("tax_brackets", []))
            ),
            non_taxable_threshold=parse_decimal(
                data.get("non_taxable_threshold", 0), "non_taxable_threshold"
            ),
            tax_reliefs=tuple(
                parse_relief(r, i) for i, r in enumerate(data.get("tax_reliefs") or [])
            ),
        )
    except KeyError as exc:
        raise InvalidRateTableError(version, [f"missing required key {exc.args[0]!r}"]) from exc
    except (TypeError, ValueError) as exc:
        raise InvalidRateTableError(version, [str(exc)]) from exc

    checksum = compute_checksum(rates.content_dict())
    expected = data.get("checksum")
    if expected and expected != checksum:
        raise InvalidRateTableError(
            version,
            [f"checksum mismatch: recorded {expected[:16]}..., content {checksum[:16]}..."],
        )
    return replace(rates, checksum=checksum)


def load_rates_file(path: Path) -> StatutoryRates:
    """Load and parse one rate table YAML file."""
    return parse_rates(load_yaml_file(path))


def compute_checksum(data: dict[str, Any]) -> str:
    """SHA-256 checksum of the canonical JSON serialization of ``data``."""
    canonical = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode()).hexdigest()


def with_checksum(rates: StatutoryRates) -> StatutoryRates:
    """Return ``rates`` with its checksum filled in from its content."""
    return replace(rates, checksum=compute_checksum(rates.content_dict()))
