from __future__ import annotations

from pathlib import Path

import yaml

from pinger.models import TargetRegistry


def load_targets(path: Path) -> list[str]:
    """
    Read target URLs from a YAML file shaped like::

        targets:
          - https://example.com/health
          - url: https://api.example.com/ping

    Order is preserved; blank entries are dropped.
    """
    if not path.exists():
        raise FileNotFoundError(f"Missing targets file at {path}")

    data = yaml.safe_load(path.read_text()) or {}
    reg = TargetRegistry.model_validate(data)
    return [t.url.strip() for t in reg.targets if t.url.strip()]
