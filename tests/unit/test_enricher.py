"""Tests for chunk enrichment headers."""

import pytest
from support_assistant.rag.enricher import detect_section_header, enrich, strip_headers


class TestEnricher:
    """Test cases for enrich and strip_headers."""

    def test_source_header_prepended(self):
        enriched = enrich(
            "Hold the power button for ten seconds to restart the display.",
            "VoltDrive Troubleshooting Guide",
            4,
        )
        assert enriched.startswith("[Source: VoltDrive Troubleshooting Guide, Page 4]\n")
        assert enriched.endswith("Hold the power button for ten seconds to restart the display.")

    def test_short_first_line_becomes_section(self):
        chunk = "Charging Problems\nIf the charge port light is red, unplug and retry."

        enriched = enrich(chunk, "VoltDrive Troubleshooting Guide", 2)

        assert enriched.split("\n")[1] == "[Section: Charging Problems]"

    def test_explicit_section_wins(self):
        chunk = "Reset\nHold the power button for ten seconds."

        enriched = enrich(chunk, "VoltDrive Troubleshooting Guide", 2, section="DISPLAY ISSUES")

        assert "[Section: DISPLAY ISSUES]" in enriched
        assert "[Section: Reset]" not in enriched

    def test_long_first_line_is_not_a_section(self):
        chunk = "The battery warranty covers manufacturing defects for eight years or 100,000 miles."

        assert detect_section_header(chunk) is None
        assert "[Section:" not in enrich(chunk, "VoltDrive Warranty & Pricing", 1)

    def test_tiny_first_line_is_not_a_section(self):
        assert detect_section_header("Ok\nmore text follows here") is None

    def test_short_single_line_chunk_is_not_its_own_section(self):
        chunk = "Contact support if it still fails."

        assert detect_section_header(chunk) is None
        assert enrich(chunk, "VoltDrive Troubleshooting Guide", 3) == (
            "[Source: VoltDrive Troubleshooting Guide, Page 3]\n" + chunk
        )

    @pytest.mark.parametrize("document,page", [
        ("VoltDrive Troubleshooting Guide", 1),
        ("VoltDrive Warranty & Pricing", 12),
        ("Doc [draft] v2", 999),
        ("", 3),
    ])
    @pytest.mark.parametrize("chunk", [
        "Plain chunk text without a header line that is long enough to skip detection.",
        "Short Header\nBody text under the header.",
        "Line one\n\nLine three after a blank line.",
    ])
    def test_strip_recovers_chunk(self, chunk, document, page):
        assert strip_headers(enrich(chunk, document, page)) == chunk

    def test_strip_leaves_plain_text_alone(self):
        text = "Tire pressure should be 42 psi.\n[Source: inline mention] stays."
        assert strip_headers(text) == text


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
