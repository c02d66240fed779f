"""Configuration objects and constants for the preview resolver."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping, Optional, Tuple

DEFAULT_CACHE_PATH = Path("data") / "thumbnails.json"
DEFAULT_TIMEOUT = 15.0
DEFAULT_REQUEST_DELAY = 0.5
DEFAULT_MAX_REDIRECTS = 10

REFRESH_ENV_VAR = "REFRESH_THUMBNAILS"
CACHE_PATH_ENV_VAR = "THUMBNAIL_CACHE"

_TRUTHY = ("1", "true", "yes", "y", "on")

# Product pages listed on the site, in display order.
DEFAULT_SOURCE_URLS: Tuple[str, ...] = (
    "https://www.werkaandemuur.nl/nl/werk/Meisje-met-bloemen/694349",
    "https://www.werkaandemuur.nl/nl/werk/Het-meisje-met-de-fijnste-kleuren/864691",
    "https://www.werkaandemuur.nl/nl/werk/Portret-van-een-man/826273",
    "https://www.werkaandemuur.nl/nl/werk/Meisje-met-de-vlinders/857847",
    "https://www.werkaandemuur.nl/nl/werk/Vrouw-met-rode-bloemen/858102",
    "https://www.werkaandemuur.nl/nl/werk/Het-meisje-met-de-krullen/863445",
    "https://www.werkaandemuur.nl/nl/werk/Meisje-in-het-blauw/865201",
    "https://www.werkaandemuur.nl/nl/werk/De-vrouw-met-de-gouden-oorbel/860788",
    "https://www.werkaandemuur.nl/nl/werk/Botanisch-meisje/862834",
    "https://www.werkaandemuur.nl/nl/werk/Vrouw-met-de-paarse-bloemen/864088",
    "https://www.werkaandemuur.nl/nl/werk/Het-meisje-met-de-rozen/862987",
    "https://www.werkaandemuur.nl/nl/werk/Zelfportret-met-vlinders/858281",
    "https://www.werkaandemuur.nl/nl/werk/Meisje-met-de-wijze-ogen/865525",
    "https://www.werkaandemuur.nl/nl/werk/Vrouw-met-het-roze-bloemen/865526",
    "https://www.werkaandemuur.nl/nl/werk/Portret-van-een-vrouw/865527",
    "https://www.werkaandemuur.nl/nl/werk/De-vrouw-met-de-blauwe-ogen/865528",
    "https://www.werkaandemuur.nl/nl/werk/Meisje-met-de-rode-lippen/865529",
    "https://www.werkaandemuur.nl/nl/werk/Vrouw-met-de-gouden-ketting/865530",
    "https://www.werkaandemuur.nl/nl/werk/Het-meisje-met-de-hoed/865531",
    "https://www.werkaandemuur.nl/nl/werk/Portret-in-geel/865532",
    "https://www.werkaandemuur.nl/nl/werk/De-vrouw-met-de-parel/865533",
    "https://www.werkaandemuur.nl/nl/werk/Meisje-met-de-sluier/865534",
    "https://www.werkaandemuur.nl/nl/werk/Vrouw-met-de-zonnebloemen/865535",
    "https://www.werkaandemuur.nl/nl/werk/Het-meisje-met-de-vlecht/865536",
    "https://www.werkaandemuur.nl/nl/werk/Portret-van-een-dame/865537",
    "https://www.werkaandemuur.nl/nl/werk/De-vrouw-met-de-waaier/865538",
    "https://www.werkaandemuur.nl/nl/werk/Meisje-met-de-mandarijn/865539",
    "https://www.werkaandemuur.nl/nl/werk/Vrouw-met-de-rozenkrans/865540",
    "https://www.werkaandemuur.nl/nl/werk/Het-meisje-met-de-fluit/865541",
    "https://www.werkaandemuur.nl/nl/werk/Portret-in-groen/865542",
    "https://www.werkaandemuur.nl/nl/werk/De-vrouw-met-de-spiegel/865543",
    "https://www.werkaandemuur.nl/nl/werk/Meisje-met-de-veer/865544",
    "https://www.werkaandemuur.nl/nl/werk/Vrouw-met-de-orchidee/865545",
    "https://www.werkaandemuur.nl/nl/werk/Het-meisje-met-de-paraplu/865546",
    "https://www.werkaandemuur.nl/nl/werk/Portret-in-rood/865547",
    "https://www.werkaandemuur.nl/nl/werk/De-vrouw-met-de-harp/865548",
    "https://www.werkaandemuur.nl/nl/werk/Meisje-met-de-duif/865549",
    "https://www.werkaandemuur.nl/nl/werk/Vrouw-met-de-anjers/865550",
)


def env_flag(value: Optional[str], default: bool = False) -> bool:
    """Interpret an environment string as a boolean toggle."""
    if value is None:
        return default
    return value.strip().lower() in _TRUTHY


@dataclass
class ResolverConfig:
    """Top-level settings that control a resolver run."""

    cache_path: Path = DEFAULT_CACHE_PATH
    refresh: bool = False
    timeout: float = DEFAULT_TIMEOUT
    request_delay: float = DEFAULT_REQUEST_DELAY
    max_redirects: int = DEFAULT_MAX_REDIRECTS
    source_urls: Tuple[str, ...] = field(default=DEFAULT_SOURCE_URLS)

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "ResolverConfig":
        """Build a config from ``REFRESH_THUMBNAILS`` and ``THUMBNAIL_CACHE``."""
        env = os.environ if environ is None else environ
        cache_override = env.get(CACHE_PATH_ENV_VAR)
        return cls(
            cache_path=Path(cache_override) if cache_override else DEFAULT_CACHE_PATH,
            refresh=env_flag(env.get(REFRESH_ENV_VAR)),
        )
