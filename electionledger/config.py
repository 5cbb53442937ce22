# electionledger/config.py
# Central place for roles, key conventions and environment settings
import os
from dotenv import load_dotenv

load_dotenv()

# --- Roles ---
ROLE_ADMIN = "admin"
ROLE_ELECTION_AUTHORITY = "election-authority"
ROLE_VOTER = "voter"
ROLE_CANDIDATE = "candidate"

# Order matters: audit role lookup and listAll walk the prefixes in this order
ROLES = (ROLE_ADMIN, ROLE_ELECTION_AUTHORITY, ROLE_VOTER, ROLE_CANDIDATE)

# At most one identity system-wide may hold these
SINGLETON_ROLES = (ROLE_ADMIN, ROLE_ELECTION_AUTHORITY)

# Roles allowed to vote and to apply for candidacy
PARTICIPANT_ROLES = (ROLE_VOTER, ROLE_CANDIDATE)

# --- Ledger key conventions ---
# Exclusive upper bound for open-ended prefix scans; sorts after every expected key character
RANGE_SENTINEL = "~"

SENTINEL_KEY = "init"
SENTINEL_VALUE = "VotingContract initialized"
RESET_SENTINEL_VALUE = "VotingContract reset"

# --- Storage backend ---
LEDGER_BACKEND = os.getenv("LEDGER_BACKEND", "memory")
LEDGER_JSON_PATH = os.getenv("LEDGER_JSON_PATH", "data/ledger.json")

MONGO_URI = os.getenv("MONGO_URI", "mongodb://localhost:27017")
MONGO_DB = os.getenv("MONGO_DB", "election_ledger")

# --- Gateway ---
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
CORS_ORIGINS = [
    origin.strip()
    for origin in os.getenv("CORS_ORIGINS", "http://localhost:3000,http://localhost:5173").split(",")
    if origin.strip()
]
