# ipgate/core/whitelist/writer.py
import os
import subprocess
import tempfile
from pathlib import Path
from typing import Iterable, List

from schemas.config import WhitelistServiceConfig
from utils.exceptions import PersistenceError, ProxyValidationError, ProxyReloadError
from .cidr import IPAddress, quantize_address, address_sort_key
import logging

logger = logging.getLogger(f"ipgate.{__name__}")


class ProxyConfigWriter:
    """
    Renders the member set into an nginx `geo` block and applies it with
    validate-before-reload: write, `<exe> -t`, then `<exe> -s reload`.
    Each step raises its own CoreServiceException subclass; the caller
    treats any of them as "not applied".
    """
    def __init__(self, config: WhitelistServiceConfig):
        self.config = config

    def quantized_members(self, members: Iterable[IPAddress]) -> List[str]:
        """Distinct quantized entries, ordered by address family then numeric address."""
        entries: List[str] = []
        seen = set()
        for ip in sorted(members, key=address_sort_key):
            entry = quantize_address(ip, self.config.ipv4_prefixlen, self.config.ipv6_prefixlen)
            if entry not in seen:
                seen.add(entry)
                entries.append(entry)
        return entries

    def render(self, members: Iterable[IPAddress]) -> str:
        lines = [f"geo ${self.config.remote_addr_var} ${self.config.result_var} {{", "default 0;"]
        lines.extend(f"{entry} 1;" for entry in self.config.preset)
        lines.extend(f"{entry} 1;" for entry in self.quantized_members(members))
        lines.append("}")
        return "\n".join(lines) + "\n"

    def write(self, text: str) -> None:
        """Atomically replaces the configured rule file with `text`."""
        target = Path(self.config.nginx_conf)
        tmp_path = None
        try:
            fd, tmp_path = tempfile.mkstemp(prefix=f".{target.name}.", suffix=".tmp", dir=str(target.parent))
            with os.fdopen(fd, "w", encoding="utf-8", newline="\n") as f:
                f.write(text)
            os.chmod(tmp_path, 0o644)
            os.replace(tmp_path, target)
        except OSError as e:
            if tmp_path and os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise PersistenceError(f"Failed to write config file {target}: {e}") from e

    def _run(self, args: List[str], error_cls: type, action: str) -> None:
        exe = Path(self.config.nginx_exe)
        cmd = [str(exe)] + args
        try:
            proc = subprocess.run(
                cmd,
                cwd=str(exe.parent),
                capture_output=True,
                text=True,
                errors="replace",
                timeout=self.config.command_timeout,
            )
        except subprocess.TimeoutExpired as e:
            raise error_cls(f"{action} timed out after {self.config.command_timeout}s", details={"cmd": cmd}) from e
        except OSError as e:
            raise error_cls(f"Failed to spawn process for {action}: {e}", details={"cmd": cmd}) from e

        if proc.returncode != 0:
            output = (proc.stderr or proc.stdout or "").strip()
            raise error_cls(
                f"{action} failed with exit code {proc.returncode}: {output}",
                details={"cmd": cmd, "returncode": proc.returncode},
            )
        if proc.stderr:
            logger.debug(f"{action} output: {proc.stderr.strip()}")

    def validate(self) -> None:
        self._run(["-t"], ProxyValidationError, "config test")

    def reload(self) -> None:
        self._run(["-s", "reload"], ProxyReloadError, "config reload")

    def apply(self, members: Iterable[IPAddress]) -> None:
        """
        Renders, writes, validates and reloads.
        Raises PersistenceError, ProxyValidationError or ProxyReloadError;
        a failed validation leaves the new file on disk but never reloads it.
        """
        text = self.render(members)
        logger.debug(f"Writing config:\n{text}")
        self.write(text)
        self.validate()
        self.reload()
        logger.info("Proxy configuration reloaded.")
