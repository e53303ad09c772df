"""Output generation for filter results."""

import logging
from pathlib import Path
from typing import List, Optional

from ..filters.format_filter import visible_formats
from ..models import FilterCriteria, MatchedEntity, format_artists

logger = logging.getLogger(__name__)


class OutputGenerator:
    """Render matched releases as a human-readable listing."""

    def __init__(self, criteria: FilterCriteria, output_file: Optional[Path] = None):
        self.criteria = criteria
        self.output_file = output_file

    def generate(self, matched: List[MatchedEntity], total: int) -> str:
        """
        Build the results listing.

        Format:
        1. Headline naming the active filters
        2. One block per match: title, year, role, credits, formats, price, URL
        3. Footer with match count

        Args:
            matched: Entities that passed the filter, in display order
            total: Number of entities that were resolved

        Returns:
            The listing text; also written to output_file when one is set
        """
        lines = ["", self.criteria.headline(), ""]

        if not matched:
            lines.append("  (none)")
        for match in matched:
            lines.extend(self._entity_lines(match))
            lines.append("")

        lines.append(f"{len(matched)} matching / {total} total.")
        content = "\n".join(lines)

        if self.output_file:
            self.output_file.parent.mkdir(parents=True, exist_ok=True)
            self.output_file.write_text(content + "\n", encoding="utf-8")
            logger.info(f"Output written to: {self.output_file}")

        return content

    def _entity_lines(self, match: MatchedEntity) -> List[str]:
        release, facts = match.release, match.facts

        year = f" ({release.year})" if release.year else ""
        role = "" if release.display_role == "Main" else f" [{release.display_role}]"
        lines = [f"  {release.title}{year}{role}"]

        by = format_artists(facts.artists)
        if by:
            lines.append(f"    by {by}")

        # Keep catalog casing for display, drop ignored formats
        visible = visible_formats(facts.formats, self.criteria)
        shown = sorted(f for f in facts.formats if f.lower() in visible)
        formats_line = f"    Formats: {', '.join(shown) if shown else '(unknown)'}"
        if facts.num_for_sale is not None and facts.lowest_price is not None:
            if facts.num_for_sale > 0:
                formats_line += f"  |  ${facts.lowest_price:.2f} ({facts.num_for_sale} for sale)"
            else:
                formats_line += "  |  none for sale"
        lines.append(formats_line)
        lines.append(f"    {release.url}")
        return lines
