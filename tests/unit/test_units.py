"""
Currency unit conversion tests.
"""

import pytest

from symbol_service.facade import SymbolService
from symbol_service.utils import to_micro_xym, to_xym


@pytest.mark.unit
class TestUnits:

    @pytest.mark.parametrize("micro,xym", [
        (0, "0"),
        (1, "0.000001"),
        (1_500_000, "1.5"),
        ("2000000", "2"),
        (-250_000, "-0.25"),
    ])
    def test_to_xym(self, micro, xym):
        assert to_xym(micro) == xym

    @pytest.mark.parametrize("xym,micro", [
        ("1.5", 1_500_000),
        ("0.000001", 1),
        (2, 2_000_000),
        ("-0.25", -250_000),
        ("1.0000019", 1_000_001),
        (".5", 500_000),
    ])
    def test_to_micro_xym(self, xym, micro):
        assert to_micro_xym(xym) == micro

    def test_exposed_on_service(self):
        assert SymbolService.to_xym(1_500_000) == "1.5"
        assert SymbolService.to_micro_xym("1.5") == 1_500_000
