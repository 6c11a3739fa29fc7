"""
Plume: Transports - File

Écriture des entrées dans un fichier avec rotation.

Les écritures passent par une file traitée séquentiellement: l'ordre des
lignes est celui des appels log(). Avant chaque écriture, la file vérifie
si une rotation est due (taille dépassée ou changement de jour); les
écritures en attente patientent pendant la rotation.

Rotation (max_files=3, compress=True):
    app.log -> app.1.log.gz
    app.1.log.gz -> app.2.log.gz
    app.2.log.gz -> app.3.log.gz
    app.3.log.gz -> supprimé
"""

import asyncio
import gzip
import shutil
from collections import deque
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Deque, List, Optional, Tuple, Union

from ..core.diagnostics import log_internal_error, log_internal_warning
from ..core.interfaces import ITransport, LogEntry, LoggerOptions
from ..core.serialization import safe_json_stringify
from ..formatters.render import render_entry
from ..redaction.redactor import get_redacted_entry


@dataclass(frozen=True)
class LogRotationConfig:
    """
    Configuration de rotation.

    Attributes:
        max_file_size: Taille déclenchant la rotation (octets)
        max_files: Nombre de fichiers de sauvegarde conservés
        compress: Compresse les sauvegardes en gzip
        date_rotation: Rotation au changement de jour (UTC)
    """

    max_file_size: int = 10 * 1024 * 1024
    max_files: int = 5
    compress: bool = True
    date_rotation: bool = False


def _utc_today() -> str:
    return datetime.now(timezone.utc).date().isoformat()


class FileTransport(ITransport):
    """
    Transport fichier avec file d'écriture et rotation.

    Example:
        transport = FileTransport("logs/app.log", LogRotationConfig(max_files=3))
    """

    def __init__(
        self,
        file_path: Union[str, Path],
        rotation: Optional[LogRotationConfig] = None,
        today: Callable[[], str] = _utc_today,
    ) -> None:
        """
        Args:
            file_path: Chemin du fichier de log
            rotation: Configuration de rotation (aucune si None)
            today: Horloge de date injectable (tests)
        """
        self._path = Path(file_path)
        self._rotation = rotation
        self._today = today
        self._current_date: Optional[str] = today() if rotation and rotation.date_rotation else None
        self._write_queue: Deque[Tuple[str, "asyncio.Future[None]"]] = deque()
        self._queue_task: Optional["asyncio.Task[None]"] = None
        self._is_rotating = False
        self._ensure_directory()

    @property
    def path(self) -> Path:
        return self._path

    @property
    def is_rotating(self) -> bool:
        return self._is_rotating

    def _ensure_directory(self) -> None:
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            log_internal_warning("Failed to create log directory:", e)

    async def log(self, entry: LogEntry, options: LoggerOptions) -> None:
        try:
            redacted = get_redacted_entry(entry, options.redaction, "file")
            line = self._format_line(redacted, options)
            await self._queue_write(line)
        except Exception as e:
            log_internal_error("FileTransport log error:", e, options)

    def _format_line(self, entry: LogEntry, options: LoggerOptions) -> str:
        if options.format == "json" and not (
            options.pluggable_formatter or options.formatter
        ):
            return safe_json_stringify(entry.to_dict()) + "\n"
        return render_entry(entry, options, use_colors=False, source="FileTransport") + "\n"

    def _queue_write(self, content: str) -> "asyncio.Future[None]":
        loop = asyncio.get_running_loop()
        future: "asyncio.Future[None]" = loop.create_future()
        self._write_queue.append((content, future))
        if self._queue_task is None or self._queue_task.done():
            self._queue_task = loop.create_task(self._process_write_queue())
        return future

    async def _process_write_queue(self) -> None:
        while self._write_queue:
            if self._rotation_due():
                await self._rotate()

            content, future = self._write_queue.popleft()
            try:
                self._append(content)
            except OSError as e:
                if not future.done():
                    future.set_exception(e)
                continue
            if not future.done():
                future.set_result(None)

    def _append(self, content: str) -> None:
        with open(self._path, "a", encoding="utf-8") as f:
            f.write(content)

    def _rotation_due(self) -> bool:
        if self._rotation is None or self._is_rotating:
            return False

        if self._rotation.date_rotation:
            today = self._today()
            if today != self._current_date:
                self._current_date = today
                return self._path.exists()

        if self._rotation.max_file_size:
            try:
                return self._path.stat().st_size > self._rotation.max_file_size
            except FileNotFoundError:
                return False

        return False

    async def _rotate(self) -> None:
        if self._rotation is None or self._is_rotating:
            return
        self._is_rotating = True
        try:
            await asyncio.to_thread(self._rotate_files)
        except Exception as e:
            log_internal_error("Critical error during log rotation:", e)
        finally:
            self._is_rotating = False

    def backup_path(self, index: int, compressed: Optional[bool] = None) -> Path:
        """
        Chemin de la sauvegarde numéro index.

        Args:
            index: Numéro de sauvegarde (1 = la plus récente)
            compressed: Force l'extension .gz (défaut: selon la configuration)

        Returns:
            Chemin "name.N.ext" ou "name.N.ext.gz"
        """
        if compressed is None:
            compressed = bool(self._rotation and self._rotation.compress)
        name = f"{self._path.stem}.{index}{self._path.suffix}"
        if compressed:
            name += ".gz"
        return self._path.with_name(name)

    def _rotate_files(self) -> None:
        if self._rotation is None or not self._path.exists():
            return

        max_files = max(self._rotation.max_files, 1)
        compress = self._rotation.compress

        oldest = self.backup_path(max_files)
        try:
            oldest.unlink(missing_ok=True)
        except OSError as e:
            log_internal_warning(f"Failed to delete old log file {oldest}:", e)

        for index in range(max_files - 1, 0, -1):
            current = self.backup_path(index)
            if current.exists():
                target = self.backup_path(index + 1)
                try:
                    current.replace(target)
                except OSError as e:
                    log_internal_warning(f"Failed to move log file {current} to {target}:", e)

        rotated = self.backup_path(1)
        if not compress:
            self._path.replace(rotated)
            return

        try:
            with open(self._path, "rb") as source, gzip.open(rotated, "wb") as target:
                shutil.copyfileobj(source, target)
            self._path.unlink()
        except OSError as e:
            log_internal_error("Failed to compress and rotate log file:", e)
            self._path.replace(self.backup_path(1, compressed=False))

    def list_backups(self) -> List[Path]:
        """Sauvegardes existantes, de la plus récente à la plus ancienne."""
        max_files = self._rotation.max_files if self._rotation else 0
        return [
            path
            for path in (self.backup_path(i) for i in range(1, max_files + 1))
            if path.exists()
        ]

    async def flush(self, options: Optional[LoggerOptions] = None) -> None:
        try:
            if self._queue_task is not None and not self._queue_task.done():
                await asyncio.shield(self._queue_task)
            pending = [future for _, future in self._write_queue]
            if pending:
                await asyncio.gather(*pending, return_exceptions=True)
        except Exception as e:
            log_internal_error("FileTransport flush error:", e, options)

    async def close(self) -> None:
        await self.flush()
