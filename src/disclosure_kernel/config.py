"""
Kernel options.

Options are passed explicitly to the operations that need them. Values can
be overridden from the environment (DISCLOSURE_KERNEL_*), environment taking
precedence over defaults.

The hash algorithm is not recorded on envelopes: producers and verifiers
must agree on the same options.
"""

import os
import re
from dataclasses import dataclass
from typing import Mapping

ENV_PREFIX = "DISCLOSURE_KERNEL_"

SUPPORTED_HASH_ALGORITHMS = ("blake2b-256", "sha256")

_PREFIX_RE = re.compile(r"^[a-z][a-z0-9_-]*$")


class ConfigError(ValueError):
    """Invalid kernel option."""


@dataclass(frozen=True)
class KernelOptions:
    """Options for committing, identifying and verifying envelopes."""
    hash_algorithm: str = "blake2b-256"
    content_id_prefix: str = "stream"
    schema_id_prefix: str = "schema"
    # largest content_hashes list verify_integrity accepts (None: no limit)
    max_fields: int | None = None

    def __post_init__(self):
        if self.hash_algorithm not in SUPPORTED_HASH_ALGORITHMS:
            raise ConfigError(
                f"Unsupported hash algorithm: {self.hash_algorithm}. "
                f"Supported: {', '.join(SUPPORTED_HASH_ALGORITHMS)}"
            )
        for name in ("content_id_prefix", "schema_id_prefix"):
            value = getattr(self, name)
            if not isinstance(value, str) or not _PREFIX_RE.match(value):
                raise ConfigError(f"Invalid {name}: {value!r}")
        if self.max_fields is not None and (
            isinstance(self.max_fields, bool)
            or not isinstance(self.max_fields, int)
            or self.max_fields < 1
        ):
            raise ConfigError(f"Invalid max_fields: {self.max_fields!r}")

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "KernelOptions":
        """Build options from DISCLOSURE_KERNEL_* environment variables."""
        env = os.environ if environ is None else environ
        overrides: dict[str, object] = {}
        for name in ("hash_algorithm", "content_id_prefix", "schema_id_prefix"):
            raw = env.get(ENV_PREFIX + name.upper())
            if raw is not None and raw.strip() != "":
                overrides[name] = raw.strip()

        raw_limit = env.get(ENV_PREFIX + "MAX_FIELDS")
        if raw_limit is not None and raw_limit.strip() != "":
            try:
                overrides["max_fields"] = int(raw_limit.strip())
            except ValueError as exc:
                raise ConfigError(f"Invalid max_fields: {raw_limit!r}") from exc
        return cls(**overrides)


DEFAULT_OPTIONS = KernelOptions()
