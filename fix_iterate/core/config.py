"""
Configuration
=============
Loads environment variables from .env file using python-dotenv.

Environment Variables:
    TARGET_SCORE            : Default quality target for the loop (default: 85)
    MAX_ITERATIONS          : Max review → fix → verify cycles (default: 10)
    FIX_BATCH_CAP           : Max issues handed to the fixer per iteration (5–7, default: 6)
    ISSUE_KEY_WORDS         : Significant words kept in an issue key (default: 3)
    REVIEWER_COMMAND        : External command serving the reviewer role
    FIXER_COMMAND           : External command serving the fixer role
    VERIFY_COMMAND          : Check suite command (exit code 0 = passed)
    AGENT_COMMAND           : Single command serving all roles (--single-agent)
    COMMAND_TIMEOUT         : Seconds allowed per external command (default: 900)
    RESULTS_PATH            : Where the final JSON report is written
    ENABLE_EVALUATE_ENDPOINT: Enable POST /evaluate (default: true)

Iteration Limit:
    MAX_ITERATIONS is the outer loop guard. It is checked only after an
    iteration's review, fix and verify phases complete, never mid-iteration.
"""
import os
from dotenv import load_dotenv

load_dotenv()

TARGET_SCORE = float(os.getenv("TARGET_SCORE", 85))
MAX_ITERATIONS = int(os.getenv("MAX_ITERATIONS", 10))

# Fix batching
FIX_BATCH_CAP = int(os.getenv("FIX_BATCH_CAP", 6))

# Issue identity
ISSUE_KEY_WORDS = int(os.getenv("ISSUE_KEY_WORDS", 3))

# External role commands
REVIEWER_COMMAND = os.getenv("REVIEWER_COMMAND", "")
FIXER_COMMAND = os.getenv("FIXER_COMMAND", "")
VERIFY_COMMAND = os.getenv("VERIFY_COMMAND", "")
AGENT_COMMAND = os.getenv("AGENT_COMMAND", "")

# Execution timeout in seconds: max time for a single external command
COMMAND_TIMEOUT = int(os.getenv("COMMAND_TIMEOUT", 900))

# Report output
RESULTS_PATH = os.getenv("RESULTS_PATH", "results.json")

ENABLE_EVALUATE_ENDPOINT = os.getenv("ENABLE_EVALUATE_ENDPOINT", "true").lower() == "true"
