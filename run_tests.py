import os
import sys

import pytest
from dotenv import load_dotenv

if __name__ == "__main__":
    # Variables de test (base dédiée, secret JWT, dossier d'uploads) si le fichier existe
    load_dotenv(dotenv_path=".env.test")

    test_path = os.path.join(os.path.dirname(__file__), "tests")

    exit_code = pytest.main([test_path, "-v"])
    sys.exit(exit_code)
