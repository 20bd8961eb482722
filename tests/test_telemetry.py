"""Import boundaries between the client SDK and the service's database layer."""

import subprocess
import sys


def test_client_sdk_import_does_not_build_a_database_engine():
    code = (
        "import sys\n"
        "import teamfeed.clients.api_client, teamfeed.feed.session, teamfeed.telemetry\n"
        "print('teamfeed.database' in sys.modules)\n"
    )
    result = subprocess.run([sys.executable, "-c", code], capture_output=True, text=True, check=True)
    assert result.stdout.strip() == "False"

