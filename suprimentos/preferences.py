"""
Local UI preferences (list column widths, cached SLA thresholds).

Loaded once by create_app() from PREFERENCES_PATH and written back only through save().
"""

from __future__ import annotations

import json
import logging
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Dict

logger = logging.getLogger(__name__)


@dataclass
class Preferences:
    column_widths: Dict[str, int] = field(default_factory=dict)
    sla_excellent: int = 5
    sla_good: int = 10

    @classmethod
    def load(cls, path: str | Path) -> "Preferences":
        path = Path(path)
        if not path.exists():
            return cls()
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
            return cls(
                column_widths={str(k): int(v) for k, v in (data.get("column_widths") or {}).items()},
                sla_excellent=int(data.get("sla_excellent", 5)),
                sla_good=int(data.get("sla_good", 10)),
            )
        except (OSError, ValueError, AttributeError, TypeError):
            logger.warning("preferences_unreadable", extra={"path": str(path)})
            return cls()

    def save(self, path: str | Path) -> None:
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(asdict(self), ensure_ascii=False, indent=2), encoding="utf-8")

    def set_column_width(self, column_id: str, width: int) -> None:
        self.column_widths[column_id] = max(int(width), 40)

    def to_dict(self) -> Dict[str, object]:
        return asdict(self)
