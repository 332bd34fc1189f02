"""Conversion of native provider ledger entries into canonical transactions."""

import logging
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Iterable, List, Optional, Tuple

from ..errors import UpstreamUnavailableError
from .models import CanonicalTransaction, GatewayType, TransactionStatus

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NormalizationRule:
    """Field semantics of one provider's ledger entries.

    Attributes:
        utr_fields: Candidate UTR field paths, in priority order. Dotted
            paths walk nested objects.
        id_fields: Candidate transaction ID field paths.
        amount_divisor: 100 for providers reporting minor units, 1 otherwise.
        captured_flag: Boolean field deciding success/failed, if the provider
            has one. Takes precedence over any status string.
        status_aliases: Provider status string to canonical status. Values
            not listed pass through verbatim.
    """
    utr_fields: Tuple[str, ...]
    id_fields: Tuple[str, ...] = ("id",)
    amount_field: str = "amount"
    amount_divisor: int = 1
    captured_flag: Optional[str] = None
    status_field: str = "status"
    status_aliases: Dict[str, str] = field(default_factory=dict)


NORMALIZATION_RULES: Dict[GatewayType, NormalizationRule] = {
    GatewayType.RAZORPAY: NormalizationRule(
        utr_fields=("acquirer_data.rrn",),
        amount_divisor=100,
        captured_flag="captured",
    ),
    GatewayType.PAYTM: NormalizationRule(
        utr_fields=("UTR", "utr", "utrNumber"),
        id_fields=("id", "txnId", "payment_id"),
    ),
    GatewayType.BHARATPE: NormalizationRule(
        utr_fields=("utr", "UTR", "utrNumber"),
        id_fields=("id", "transactionId", "payment_id"),
    ),
    GatewayType.STRIPE: NormalizationRule(
        utr_fields=("metadata.utr", "metadata.rrn"),
        amount_divisor=100,
        status_aliases={
            "succeeded": TransactionStatus.SUCCESS.value,
            "canceled": TransactionStatus.FAILED.value,
            "requires_payment_method": TransactionStatus.FAILED.value,
            "processing": TransactionStatus.PENDING.value,
            "requires_action": TransactionStatus.PENDING.value,
            "requires_capture": TransactionStatus.PENDING.value,
            "requires_confirmation": TransactionStatus.PENDING.value,
        },
    ),
}


def _lookup(record: Dict[str, Any], path: str) -> Any:
    value: Any = record
    for part in path.split("."):
        if not isinstance(value, dict):
            return None
        value = value.get(part)
    return value


def _first_present(record: Dict[str, Any], paths: Iterable[str]) -> Optional[str]:
    for path in paths:
        value = _lookup(record, path)
        if value is None:
            continue
        text = str(value)
        if text:
            return text
    return None


def extract_utr(gateway_type: GatewayType, record: Dict[str, Any]) -> Optional[str]:
    """Read the UTR field of a raw entry without validating the rest of it."""
    rule = NORMALIZATION_RULES.get(gateway_type)
    if rule is None or not isinstance(record, dict):
        return None
    return _first_present(record, rule.utr_fields)


def convert_amount(raw_amount: Any, divisor: int) -> Decimal:
    """Convert a provider amount into the order's major unit.

    Args:
        raw_amount: Amount as reported by the provider.
        divisor: 100 for minor-unit providers, 1 for major-unit providers.

    Returns:
        Exact decimal amount.

    Raises:
        ValueError: If the amount is missing or not numeric.
    """
    if raw_amount is None or isinstance(raw_amount, bool):
        raise ValueError(f"Invalid amount: {raw_amount!r}")
    try:
        amount = Decimal(str(raw_amount))
    except InvalidOperation as e:
        raise ValueError(f"Invalid amount: {raw_amount!r}") from e
    if divisor == 1:
        return amount
    return amount / Decimal(divisor)


def derive_status(record: Dict[str, Any], rule: NormalizationRule) -> str:
    if rule.captured_flag is not None:
        captured = _lookup(record, rule.captured_flag)
        return TransactionStatus.SUCCESS.value if captured is True else TransactionStatus.FAILED.value
    status = _lookup(record, rule.status_field)
    if status is None or status == "":
        return TransactionStatus.SUCCESS.value
    status = str(status)
    return rule.status_aliases.get(status, status)


def normalize_transaction(gateway_type: GatewayType, record: Dict[str, Any]) -> CanonicalTransaction:
    """Normalize a single native ledger entry.

    Args:
        gateway_type: Provider the record came from.
        record: Native record as returned by the provider.

    Returns:
        CanonicalTransaction with amount in major units.

    Raises:
        UpstreamUnavailableError: If the record lacks a usable amount.
    """
    rule = NORMALIZATION_RULES.get(gateway_type)
    if rule is None:
        raise UpstreamUnavailableError(
            gateway_type.value, f"No normalization rule for gateway type: {gateway_type.value}"
        )

    try:
        amount = convert_amount(_lookup(record, rule.amount_field), rule.amount_divisor)
    except ValueError as e:
        raise UpstreamUnavailableError(
            gateway_type.value, f"Malformed {gateway_type.value} transaction: {e}"
        ) from e

    return CanonicalTransaction(
        id=_first_present(record, rule.id_fields) or "",
        amount=amount,
        status=derive_status(record, rule),
        utr=_first_present(record, rule.utr_fields),
        raw_data=record,
    )


def normalize_transactions(
    gateway_type: GatewayType,
    records: Iterable[Dict[str, Any]],
) -> List[CanonicalTransaction]:
    """Normalize a ledger, preserving the provider's order.

    Entries without a usable amount are skipped; they can never settle an
    order, and one bad entry must not hide the rest of the ledger.
    """
    transactions: List[CanonicalTransaction] = []
    skipped = 0
    for record in records:
        try:
            transactions.append(normalize_transaction(gateway_type, record))
        except UpstreamUnavailableError as e:
            skipped += 1
            logger.warning(f"Skipping ledger entry: {e.message}")
    logger.debug(
        f"Normalized {len(transactions)} {gateway_type.value} transactions "
        f"({skipped} skipped)"
    )
    return transactions
