# aquanav/serve.py
"""Run the API under uvicorn, configured from the environment."""

import os
from typing import Any, Dict

import uvicorn

_TRUTHY = {"1", "true", "yes", "on"}


def _env_flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in _TRUTHY


def _ssl_options() -> Dict[str, str]:
    env_to_option = {
        "SSL_CERTFILE": "ssl_certfile",
        "SSL_KEYFILE": "ssl_keyfile",
        "SSL_CA_CERTS": "ssl_ca_certs",
        "SSL_KEYFILE_PASSWORD": "ssl_keyfile_password",
    }
    return {
        option: os.environ[env_name]
        for env_name, option in env_to_option.items()
        if os.getenv(env_name)
    }


def build_options() -> Dict[str, Any]:
    reload_enabled = _env_flag("RELOAD")
    options: Dict[str, Any] = {
        "host": os.getenv("HOST", "0.0.0.0"),
        "port": int(os.getenv("PORT", "8000")),
        "reload": reload_enabled,
        "log_level": os.getenv("LOG_LEVEL", "info"),
        "proxy_headers": True,
        "forwarded_allow_ips": os.getenv("FORWARDED_ALLOW_IPS", "*"),
    }
    # uvicorn refuses workers together with reload
    workers = int(os.getenv("WEB_CONCURRENCY", "1"))
    if workers > 1 and not reload_enabled:
        options["workers"] = workers
    options.update(_ssl_options())
    return options


def main() -> None:
    uvicorn.run("aquanav.main:app", **build_options())


if __name__ == "__main__":
    main()
