import yaml
import os
import dataclasses
from typing import Optional

# Import YAML data
base = os.path.dirname(__file__)
with open(os.path.join(base, "defaults.yaml"), "r") as f:
    DEFAULTS = yaml.safe_load(f.read())["Ordering"]


@dataclasses.dataclass
class OrderingConfig:
    ceiling: int = DEFAULTS["ceiling"]
    max_depth: Optional[int] = DEFAULTS["max_depth"]
    retries: int = DEFAULTS["retries"]

    def __post_init__(self):
        if self.ceiling < 2:
            raise ValueError(f"ceiling must be at least 2, got {self.ceiling}")
        if self.retries < 0:
            raise ValueError(f"retries must be non-negative, got {self.retries}")

    @classmethod
    def from_dict(cls, data: dict):
        known = set(f.name for f in dataclasses.fields(cls))
        unknown = set(data.keys()) - known
        if len(unknown) > 0:
            raise KeyError(f"Unknown ordering settings {sorted(unknown)}")
        return cls(**{**DEFAULTS, **data})


def load_config(path: Optional[str] = None) -> OrderingConfig:
    if path is None:
        return OrderingConfig()
    with open(path, "r") as f:
        data = yaml.safe_load(f.read()) or {}
    # Accept either a bare mapping or one nested under "Ordering"
    return OrderingConfig.from_dict(data.get("Ordering", data))
