"""Common helpers for reasoning about bank statement tables."""
from __future__ import annotations

import string
from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Iterable, Mapping, Sequence


class CanonicalField(str, Enum):
    """Transaction attributes every observed header is normalized toward."""

    DATE = "Date"
    REFERENCE = "Reference"
    DESCRIPTION = "Description"
    VALUE_DATE = "Value Date"
    CREDIT = "Credit"
    DEBIT = "Debit"
    BALANCE = "Balance"


# Declaration order matters: it is the matching order and the positional order.
CANONICAL_ORDER: tuple[CanonicalField, ...] = tuple(CanonicalField)

DEFAULT_HEADER_SYNONYMS: Mapping[CanonicalField, tuple[str, ...]] = MappingProxyType(
    {
        CanonicalField.DATE: ("Date", "Transaction Date", "Value Date", "Tran Date", "Create Date"),
        CanonicalField.REFERENCE: ("Reference", "Reference No", "Ref No", "Transaction ID", "Trans ID", "Trans Ref"),
        CanonicalField.DESCRIPTION: (
            "Description",
            "Narration",
            "Transaction Description",
            "Details",
            "Particulars",
            "Description/Payee/Memo",
        ),
        CanonicalField.VALUE_DATE: ("Value Date", "Val Date", "Settlement Date", "Create Date"),
        CanonicalField.CREDIT: ("Credit", "Deposit", "Credit Amount", "Amount (CR)", "Deposits", "Lodgements"),
        CanonicalField.DEBIT: ("Debit", "Withdrawal", "Debit Amount", "Amount (DR)", "Withdrawals"),
        CanonicalField.BALANCE: ("Balance", "Running Balance", "Closing Balance", "Current Balance"),
    }
)

SUMMARY_HEADER_KEYWORDS: tuple[str, ...] = ("account", "currency", "balance:", "period", "statement", "branch")

DEFAULT_SUMMARY_KEYS: tuple[str, ...] = (
    "Account Name",
    "Account Holder",
    "Customer Name",
    "Account Number",
    "Account No",
    "A/C No",
    "Currency",
    "Account Currency",
    "Account Type",
    "Statement Period",
    "Period",
    "Opening Balance",
    "Closing Balance",
    "Cleared Balance",
    "Available Balance",
    "Uncleared Balance",
    "Total Credit",
    "Total Credits",
    "Total Debit",
    "Total Debits",
    "Branch",
    "Branch Name",
    "Bank Name",
    "NUBAN",
    "BVN",
)

MIN_TRANSACTION_FIELDS = 4

_PUNCTUATION_TABLE = str.maketrans("", "", string.punctuation.replace("-", ""))


def normalize_summary_key(text: str) -> str:
    """Strip punctuation except hyphens, trim and lowercase."""

    return (text or "").translate(_PUNCTUATION_TABLE).strip().lower()


class SummaryKeyNormalizer:
    """Allow-list membership test for account/statement metadata keys."""

    def __init__(self, terms: Iterable[str] = DEFAULT_SUMMARY_KEYS) -> None:
        self._allowed = frozenset(normalize_summary_key(term) for term in terms)

    @property
    def allowed(self) -> frozenset[str]:
        return self._allowed

    def normalize(self, text: str) -> str:
        return normalize_summary_key(text)

    def is_summary_key(self, text: str) -> bool:
        normalized = normalize_summary_key(text)
        return bool(normalized) and normalized in self._allowed


@dataclass(frozen=True, slots=True)
class HeaderMapping:
    """Resolved column index per canonical field for one header row."""

    columns: Mapping[CanonicalField, int]

    @property
    def matched(self) -> int:
        return len(self.columns)

    def is_transaction_table(self) -> bool:
        return self.matched >= MIN_TRANSACTION_FIELDS


class HeaderMapper:
    """Fuzzy matching of observed header text against canonical fields."""

    def __init__(self, synonyms: Mapping[CanonicalField, Sequence[str]] = DEFAULT_HEADER_SYNONYMS) -> None:
        self._synonyms: Mapping[CanonicalField, tuple[str, ...]] = MappingProxyType(
            {
                canonical: tuple(name.casefold() for name in synonyms.get(canonical, ()))
                for canonical in CANONICAL_ORDER
            }
        )

    def map_headers(self, headers: Sequence[str]) -> HeaderMapping:
        """Return the column each canonical field resolves to.

        Fields are matched in declaration order. A column already claimed by an
        earlier field is skipped and the scan continues to the right.
        """

        normalized = [(header or "").strip().casefold() for header in headers]
        claimed: set[int] = set()
        columns: dict[CanonicalField, int] = {}
        for canonical in CANONICAL_ORDER:
            candidates = self._synonyms[canonical]
            for index, header in enumerate(normalized):
                if index in claimed:
                    continue
                if any(candidate in header for candidate in candidates):
                    columns[canonical] = index
                    claimed.add(index)
                    break
        return HeaderMapping(columns=MappingProxyType(columns))


def is_summary_header(headers: Sequence[str]) -> bool:
    """Whether a header row announces account/statement metadata."""

    lowered = [(header or "").casefold() for header in headers]
    return any(keyword in cell for cell in lowered for keyword in SUMMARY_HEADER_KEYWORDS)


__all__ = [
    "CANONICAL_ORDER",
    "CanonicalField",
    "DEFAULT_HEADER_SYNONYMS",
    "DEFAULT_SUMMARY_KEYS",
    "HeaderMapper",
    "HeaderMapping",
    "MIN_TRANSACTION_FIELDS",
    "SUMMARY_HEADER_KEYWORDS",
    "SummaryKeyNormalizer",
    "is_summary_header",
    "normalize_summary_key",
]
