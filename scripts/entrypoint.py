import logging
import os

from push_gateway.config import get_settings

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("entrypoint")


def main() -> None:
  """Launch the push gateway under uvicorn on the configured port."""
  settings = get_settings()
  logger.info("Starting push gateway environment=%s port=%s", settings.environment, settings.port)
  # Replace the current process so uvicorn receives SIGTERM directly.
  args = ["uvicorn", "push_gateway.main:app", "--host", "0.0.0.0", "--port", str(settings.port), "--no-server-header"]
  os.execvp("uvicorn", args)


if __name__ == "__main__":
  main()
