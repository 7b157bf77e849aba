"""Configuration du système de logging centralisé."""

import glob
import json
import logging
import logging.handlers
import os
import re
from datetime import date, datetime, timedelta
from pathlib import Path
from typing import Any, Dict, Optional

from bson import ObjectId

from kickstart.core.settings import get_settings

_DATE_IN_NAME = re.compile(r"(\d{4}-\d{2}-\d{2})")


class CustomJSONEncoder(json.JSONEncoder):
    """Encodeur JSON gérant ObjectId, datetime et date."""

    def default(self, obj):
        if isinstance(obj, ObjectId):
            return str(obj)
        if isinstance(obj, (datetime, date)):
            return obj.isoformat()
        return super().default(obj)


class DataLogger:
    """Logger de résumés structurés (une entrée JSON par opération).

    Description:
        Un fichier par jour `YYYY-MM-DD-data.json`, maintenu sous forme de tableau JSON
        valide : chaque ajout retire le `]` final, ajoute l'entrée puis referme le tableau.
    """

    def __init__(self, logs_dir: str = "logs"):
        self.logs_dir = Path(logs_dir)
        self.logs_dir.mkdir(parents=True, exist_ok=True)

    def log_data(
        self,
        calling_context: str,
        data: Dict[str, Any],
        user_data: Optional[Dict[str, Any]] = None,
    ) -> None:
        """Ajoute un résumé au fichier JSON du jour.

        Args:
            calling_context: Opération à l'origine de l'entrée (ex. "task_ingestion").
            data: Contenu du résumé.
            user_data: Contexte utilisateur optionnel (ex. `owner_id`).
        """
        json_file = self.logs_dir / f"{datetime.now().strftime('%Y-%m-%d')}-data.json"
        entry = json.dumps(
            {
                "datetime": datetime.now().isoformat(),
                "calling_context": calling_context,
                "user_data": user_data or {},
                "data": data,
            },
            cls=CustomJSONEncoder,
        )

        content = json_file.read_text(encoding="utf-8").rstrip() if json_file.exists() else ""
        if content.endswith("]"):
            content = content[:-1].rstrip()
        if not content:
            content = "["
        elif not content.endswith("["):
            content += ","
        json_file.write_text(f"{content}{entry}]", encoding="utf-8")


def _rotating_handler(path: Path, formatter: logging.Formatter) -> logging.Handler:
    handler = logging.handlers.TimedRotatingFileHandler(
        filename=path, when="midnight", interval=1, encoding="utf-8"
    )
    handler.suffix = "%Y-%m-%d"
    handler.setFormatter(formatter)
    return handler


def setup_logging(logs_dir: Optional[str] = None) -> tuple[logging.Logger, logging.Logger, DataLogger]:
    """Configure les loggers avec rotation quotidienne.

    Returns:
        tuple: (logger_generic, logger_errors, data_logger)
    """
    settings = get_settings()
    logs_path = Path(logs_dir or settings.logs_dir)
    logs_path.mkdir(parents=True, exist_ok=True)

    cleanup_old_logs(logs_path, settings.logs_retention_days)

    formatter = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")

    generic_logger = logging.getLogger("kickstart.generic")
    generic_logger.setLevel(logging.INFO)
    if not generic_logger.handlers:
        generic_logger.addHandler(_rotating_handler(logs_path / "generic.log", formatter))

    error_logger = logging.getLogger("kickstart.errors")
    error_logger.setLevel(logging.ERROR)
    if not error_logger.handlers:
        error_logger.addHandler(_rotating_handler(logs_path / "errors.log", formatter))

    return generic_logger, error_logger, DataLogger(str(logs_path))


def cleanup_old_logs(logs_dir: Path, retention_days: int = 30) -> None:
    """Supprime les fichiers de logs datés plus anciens que `retention_days`."""
    cutoff_str = (datetime.now() - timedelta(days=retention_days)).strftime("%Y-%m-%d")

    patterns = [
        f"{logs_dir}/*-data.json",
        f"{logs_dir}/generic.log.*",
        f"{logs_dir}/errors.log.*",
    ]
    for pattern in patterns:
        for file_path in glob.glob(pattern):
            match = _DATE_IN_NAME.search(os.path.basename(file_path))
            if match and match.group(1) < cutoff_str:
                try:
                    os.remove(file_path)
                except OSError:
                    continue


_loggers: Optional[tuple[logging.Logger, logging.Logger, DataLogger]] = None


def get_loggers() -> tuple[logging.Logger, logging.Logger, DataLogger]:
    """Retourne les loggers configurés (singleton)."""
    global _loggers
    if _loggers is None:
        _loggers = setup_logging()
    return _loggers


def extract_user_data(owner_id: Optional[ObjectId] = None, request=None) -> Dict[str, Any]:
    """Contexte utilisateur pour les entrées du DataLogger (id, IP, user-agent)."""
    user_data: Dict[str, Any] = {}

    if owner_id:
        user_data["owner_id"] = owner_id

    if request is not None:
        client = getattr(request, "client", None)
        if client:
            user_data["ip"] = client.host
        headers = getattr(request, "headers", None)
        if headers is not None and headers.get("user-agent"):
            user_data["user_agent"] = headers.get("user-agent")

    return user_data
