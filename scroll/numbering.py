import re
from dataclasses import dataclass
from typing import Dict, Optional, Tuple

from scroll.types import SourceType

CATECHISM_MIN_PARAGRAPH = 1
CATECHISM_MAX_PARAGRAPH = 2865


@dataclass(frozen=True)
class NumberingRule:
    pattern: re.Pattern
    minimum: Optional[int] = None
    maximum: Optional[int] = None

    def accepts(self, value: int) -> bool:
        if self.minimum is not None and value < self.minimum:
            return False
        if self.maximum is not None and value > self.maximum:
            return False
        return True


NUMBERED_PROSE_RULE = NumberingRule(re.compile(r"^(\d{1,3})\.?\s+(.+)$", re.DOTALL))

# Scripture is addressed by book:chapter:verse and has no rule here.
NUMBERING_RULES: Dict[SourceType, NumberingRule] = {
    SourceType.CATECHISM: NumberingRule(
        re.compile(r"^(\d{1,4})\.?\s+(.+)$", re.DOTALL),
        minimum=CATECHISM_MIN_PARAGRAPH,
        maximum=CATECHISM_MAX_PARAGRAPH,
    ),
    SourceType.PATRISTIC: NUMBERED_PROSE_RULE,
    SourceType.TREATISE: NUMBERED_PROSE_RULE,
    SourceType.GENERIC: NUMBERED_PROSE_RULE,
}


def extract_paragraph_number(line: str, source_type: SourceType) -> Optional[Tuple[int, str, str]]:
    rule = NUMBERING_RULES.get(source_type)
    if rule is None:
        return None
    match = rule.pattern.match(line.strip())
    if match is None:
        return None
    display_number = match.group(1)
    number = int(display_number)
    if not rule.accepts(number):
        return None
    return number, display_number, match.group(2)
