from __future__ import annotations

from collections.abc import Mapping

EMERGENCY_NUMBERS: dict[str, tuple[str, ...]] = {
    "US": ("911",),
    "UK": ("999", "112"),
    "GB": ("999", "112"),
    "EU": ("112",),
    "IN": ("112", "102", "108"),
}

EU_REGIONAL_CODES = frozenset({"DE", "FR", "ES", "IT", "NL"})
EU_REGIONAL_NUMBERS: tuple[str, ...] = ("112",)
UNIVERSAL_NUMBERS: tuple[str, ...] = ("112", "911")


def _normalize_country_code(country_code: str | None) -> str | None:
    if not country_code:
        return None
    code = country_code.strip().upper()
    return code or None


class EmergencyNumberResolver:
    def __init__(
        self,
        table: Mapping[str, tuple[str, ...]] = EMERGENCY_NUMBERS,
        regional_codes: frozenset[str] = EU_REGIONAL_CODES,
    ) -> None:
        self._table = {key.upper(): tuple(numbers) for key, numbers in table.items() if numbers}
        self._regional_codes = regional_codes

    def resolve(self, country_code: str | None) -> list[str]:
        """Return dial strings for a country, primary number first.

        Lookup order is the exact table, then the EU regional set, then the
        universal fallback, so the result is never empty.
        """
        code = _normalize_country_code(country_code)
        if code is not None and code in self._table:
            return list(self._table[code])
        if code is not None and code in self._regional_codes:
            return list(EU_REGIONAL_NUMBERS)
        return list(UNIVERSAL_NUMBERS)

    def primary_number(self, country_code: str | None) -> str:
        return self.resolve(country_code)[0]
