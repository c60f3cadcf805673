"""
hris_config -- single public entrypoint for statutory rate tables.

Responsibility:
    Provides ``get_active_rates()``, the runtime way to obtain the statutory
    rate table in force for a jurisdiction on a date.  Rate tables are
    versioned YAML files under ``hris_config/sets/``; each carries its own
    effective date range so historical periods can be recomputed against the
    rates in force at the time.

Architecture position:
    Configuration -- sits above ``hris_kernel`` and below ``hris_engines`` /
    ``hris_modules``.  The kernel MUST NEVER import from ``hris_config``.

Invariants enforced:
    - Every returned table has passed ``validate_rates``.
    - Deterministic: same YAML always produces the same checksum.

Failure modes:
    - ``RateTableNotFoundError`` -- no table covers the jurisdiction/date.
    - ``InvalidRateTableError`` -- the matching table is malformed.

Audit relevance:
    Every successful call emits an ``HRIS_RATES_TRACE`` log record with the
    version, checksum and effective range of the table returned.
"""

from __future__ import annotations

from datetime import date
from pathlib import Path

from hris_config.loader import load_rates_file, parse_rates
from hris_config.schema import (
    InsuranceSchemeDef,
    StatutoryRates,
    TaxBracketDef,
    TaxReliefDef,
)
from hris_config.validator import RatesValidationResult, ensure_valid, validate_rates
from hris_kernel.exceptions import RateTableNotFoundError
from hris_kernel.logging_config import get_logger

__all__ = [
    "get_active_rates",
    "load_rates_file",
    "parse_rates",
    "validate_rates",
    "ensure_valid",
    "RatesValidationResult",
    "StatutoryRates",
    "InsuranceSchemeDef",
    "TaxBracketDef",
    "TaxReliefDef",
]

_logger = get_logger("config")

_DEFAULT_CONFIG_DIR = Path(__file__).parent / "sets"


def get_active_rates(
    jurisdiction: str,
    as_of_date: date,
    config_dir: Path | None = None,
) -> StatutoryRates:
    """Return the validated rate table in force for ``jurisdiction`` on ``as_of_date``.

    When several tables cover the date, the one with the latest
    ``effective_from`` wins.

    Args:
        jurisdiction: Jurisdiction code, e.g. ``"ID"``.
        as_of_date: Date the table must be effective on.
        config_dir: Override path to the rate sets directory.
            Defaults to hris_config/sets/.

    Raises:
        RateTableNotFoundError: If no table matches.
        InvalidRateTableError: If the matching table fails validation.
    """
    sets_dir = config_dir or _DEFAULT_CONFIG_DIR

    candidates: list[tuple[StatutoryRates, Path]] = []
    if sets_dir.is_dir():
        for path in sorted(sets_dir.glob("*.yaml")):
            rates = load_rates_file(path)
            if rates.jurisdiction == jurisdiction and rates.is_effective(as_of_date):
                candidates.append((rates, path))

    if not candidates:
        _logger.warning(
            "rate_table_not_found",
            extra={
                "jurisdiction": jurisdiction,
                "as_of_date": as_of_date.isoformat(),
                "config_dir": str(sets_dir),
            },
        )
        raise RateTableNotFoundError(jurisdiction, as_of_date.isoformat())

    rates, path = max(candidates, key=lambda pair: pair[0].effective_from)
    ensure_valid(rates)

    _logger.info(
        "HRIS_RATES_TRACE",
        extra={
            "trace_type": "HRIS_RATES_TRACE",
            "rates_version": rates.version,
            "jurisdiction": rates.jurisdiction,
            "checksum": rates.checksum,
            "effective_from": rates.effective_from.isoformat(),
            "effective_to": rates.effective_to.isoformat() if rates.effective_to else None,
            "scheme_count": len(rates.insurance_schemes),
            "bracket_count": len(rates.tax_brackets),
            "source": path.name,
        },
    )
    return rates
