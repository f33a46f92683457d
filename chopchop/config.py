"""TOML configuration loader for the ChopChop backend and CLI."""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass, field
from pathlib import Path

if sys.version_info >= (3, 11):
    import tomllib
else:
    try:
        import tomli as tomllib
    except ImportError:
        tomllib = None  # type: ignore[assignment]

_DEFAULT_PORT = 5001


@dataclass
class ServerConfig:
    host: str = "127.0.0.1"
    port: int = _DEFAULT_PORT
    cors_origins: list[str] = field(default_factory=lambda: ["*"])


@dataclass
class GeminiConfig:
    api_key: str = ""
    model: str = "gemini-2.5-flash"


@dataclass
class ClaudeConfig:
    api_key: str = ""
    model: str = "claude-sonnet-4-5-20250929"


@dataclass
class GenerationConfig:
    backend: str = "gemini"
    gemini: GeminiConfig = field(default_factory=GeminiConfig)
    claude: ClaudeConfig = field(default_factory=ClaudeConfig)


@dataclass
class ProxyConfig:
    url: str = f"http://localhost:{_DEFAULT_PORT}/api/generate"
    timeout: float = 60.0


@dataclass
class DatabaseConfig:
    path: str = "~/.config/chopchop/inventory.db"


@dataclass
class OcrConfig:
    lang: str = "eng"
    tesseract_cmd: str = ""
    timeout: float = 0.0  # 0 disables the deadline


@dataclass
class RecipeConfig:
    count: int = 3


@dataclass
class AppConfig:
    server: ServerConfig = field(default_factory=ServerConfig)
    generation: GenerationConfig = field(default_factory=GenerationConfig)
    proxy: ProxyConfig = field(default_factory=ProxyConfig)
    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    ocr: OcrConfig = field(default_factory=OcrConfig)
    recipes: RecipeConfig = field(default_factory=RecipeConfig)


def load_config(path: str | Path | None = None) -> AppConfig:
    """Load configuration from a TOML file.

    Falls back to defaults if no path is given or the file doesn't exist.
    API keys and the server port can be supplied via environment variables.
    """
    raw: dict = {}

    if path is not None:
        p = Path(path)
        if p.exists():
            if tomllib is None:
                raise ImportError(
                    "tomli is required on Python < 3.11: pip install tomli"
                )
            with open(p, "rb") as f:
                raw = tomllib.load(f)

    srv = raw.get("server", {})
    gen = raw.get("generation", {})
    prx = raw.get("proxy", {})
    dbs = raw.get("database", {})
    ocr = raw.get("ocr", {})
    rcp = raw.get("recipes", {})

    gemini_cfg = gen.get("gemini", {})
    claude_cfg = gen.get("claude", {})

    # Resolve API keys: config file → environment variable
    gemini_api_key = gemini_cfg.get("api_key", "") or os.environ.get(
        "GEMINI_API_KEY", ""
    )
    claude_api_key = claude_cfg.get("api_key", "") or os.environ.get(
        "ANTHROPIC_API_KEY", ""
    )

    port = srv.get("port")
    if port is None:
        port = int(os.environ.get("PORT", _DEFAULT_PORT))

    return AppConfig(
        server=ServerConfig(
            host=srv.get("host", "127.0.0.1"),
            port=port,
            cors_origins=srv.get("cors_origins", ["*"]),
        ),
        generation=GenerationConfig(
            backend=gen.get("backend", "gemini"),
            gemini=GeminiConfig(
                api_key=gemini_api_key,
                model=gemini_cfg.get("model", "gemini-2.5-flash"),
            ),
            claude=ClaudeConfig(
                api_key=claude_api_key,
                model=claude_cfg.get("model", "claude-sonnet-4-5-20250929"),
            ),
        ),
        proxy=ProxyConfig(
            url=prx.get("url", f"http://localhost:{port}/api/generate"),
            timeout=float(prx.get("timeout", 60.0)),
        ),
        database=DatabaseConfig(
            path=dbs.get("path", "~/.config/chopchop/inventory.db"),
        ),
        ocr=OcrConfig(
            lang=ocr.get("lang", "eng"),
            tesseract_cmd=ocr.get("tesseract_cmd", ""),
            timeout=float(ocr.get("timeout", 0.0)),
        ),
        recipes=RecipeConfig(
            count=rcp.get("count", 3),
        ),
    )
