"""
Plain-text strategic plan.

Renders one block per active MVP: its selected measures (flagging those
still to be implemented) and its assigned clinicians. The output depends
only on its arguments, so the same plan and date always give the same text.
"""

import datetime
import typing
from dataclasses import dataclass

from .clinician import Clinician
from .measure import Measure
from .mvp import Mvp

REPORT_TITLE = "MVP STRATEGIC PLAN"
RULE_WIDTH = 50


@dataclass(frozen=True)
class ReportSection:
    mvp: Mvp
    clinician_count: int
    measures: typing.Sequence[Measure]
    clinicians: typing.Sequence[Clinician]


def render_report(
    sections: typing.Iterable[ReportSection],
    generated_on: datetime.date,
    organization: typing.Optional[str] = None,
) -> str:
    title = f"{REPORT_TITLE} - {organization}" if organization else REPORT_TITLE
    lines = [
        title,
        "=" * RULE_WIDTH,
        "",
        f"Generated: {generated_on.isoformat()}",
        "",
    ]
    for section in sections:
        lines.extend(_render_section(section))
    return "\n".join(lines) + "\n"


def _render_section(section: ReportSection) -> list[str]:
    header = section.mvp.title
    lines = [
        "",
        header,
        "-" * len(header),
        f"Clinicians: {section.clinician_count}",
        "",
    ]
    if section.measures:
        lines.append("Selected Measures:")
        for measure in section.measures:
            lines.append(f"  - {measure.measure_id}: {measure.measure_name}")
            if not measure.is_activated:
                lines.append("    ACTION: Implement measure")

    lines.append("")
    lines.append("Assigned Clinicians:")
    for clinician in section.clinicians:
        lines.append(f"  - {clinician.display_name} ({clinician.specialty or 'N/A'})")
    lines.append("")
    return lines
