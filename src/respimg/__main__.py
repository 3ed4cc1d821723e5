from respimg.cli import app

if __name__ == "__main__":  # pragma: no cover - executed only via `python -m`
    app()
