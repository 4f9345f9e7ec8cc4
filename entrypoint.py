"""Run the ledger API with uvicorn. The port comes from CASCADE_PORT (default 8001)."""
import os
import uvicorn

from cascade_ledger.config.settings import get_settings
from cascade_ledger.main import app


def main() -> None:
    port = int(os.environ.get("CASCADE_PORT", "8001"))
    uvicorn.run(app, host="127.0.0.1", port=port, log_level=get_settings().log_level.lower())


if __name__ == "__main__":
    main()
