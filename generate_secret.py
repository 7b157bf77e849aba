# generate_secret.py
# Ajoute une clé JWT_SECRET_KEY aléatoire dans le .env (sans écraser une clé existante).

import secrets
from pathlib import Path

from rich.console import Console

ENV_PATH = Path(".env")
SECRET_KEY_NAME = "JWT_SECRET_KEY"
ANCHOR_COMMENT = "# Auth"

console = Console()


def generate_secret_key(bits: int = 512) -> str:
    return secrets.token_hex(bits // 8)


def read_env_lines(path: Path) -> list[str]:
    return path.read_text(encoding="utf-8").splitlines(keepends=True) if path.exists() else []


def env_key_exists(lines: list[str], key: str) -> bool:
    return any(line.strip().startswith(f"{key}=") for line in lines)


def with_key_after_anchor(lines: list[str], key: str, value: str, anchor: str) -> tuple[list[str], bool]:
    """Renvoie les lignes avec `key=value` insérée après `anchor`, ou ajoutée en fin de fichier.

    Returns:
        tuple: (nouvelles lignes, True si l'ancre a été trouvée)
    """
    for i, line in enumerate(lines):
        if line.strip() == anchor:
            return lines[: i + 1] + [f"{key}={value}\n"] + lines[i + 1:], True

    tail = [] if not lines or lines[-1].endswith("\n") else ["\n"]
    return lines + tail + [f"{anchor}\n", f"{key}={value}\n"], False


def main() -> None:
    lines = read_env_lines(ENV_PATH)
    if env_key_exists(lines, SECRET_KEY_NAME):
        console.print(f"[yellow]🔐 {SECRET_KEY_NAME} déjà défini dans {ENV_PATH}. Aucune modification.[/]")
        return

    new_lines, anchored = with_key_after_anchor(lines, SECRET_KEY_NAME, generate_secret_key(), ANCHOR_COMMENT)
    ENV_PATH.write_text("".join(new_lines), encoding="utf-8")
    if anchored:
        console.print(f"[green]✅ {SECRET_KEY_NAME} ajouté après '{ANCHOR_COMMENT}' dans {ENV_PATH}.[/]")
    else:
        console.print(f"[yellow]⚠️ Section '{ANCHOR_COMMENT}' absente : ajoutée en fin de {ENV_PATH}.[/]")


if __name__ == "__main__":
    main()
