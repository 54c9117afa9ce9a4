"""Constants for the StatsPlus league API."""

DEFAULT_HOST = "statsplus.net"

# Endpoint paths, relative to https://<host>/<league>/api
PLAYER_BATTING_STATS = "/playerbatstatsv2/"
PLAYER_FIELDING_STATS = "/playerfieldstatsv2/"
PLAYER_PITCHING_STATS = "/playerpitchstatsv2/"
TEAM_BATTING_STATS = "/teambatstats/"
TEAM_PITCHING_STATS = "/teampitchstats/"
TEAMS = "/teams/"
DRAFT = "/draftv2/"
PLAYERS = "/players/"
RATINGS = "/ratings/"
GAME_HISTORY = "/gamehistory/"
CONTRACTS = "/contract/"
CONTRACT_EXTENSIONS = "/contractextension/"
EXPORTS = "/exports/"

SPLITS = {
    1: "Overall",
    2: "vs Left-handed",
    3: "vs Right-handed",
}

# Ratings exports name the player column differently per deployment
PLAYER_ID_FIELDS = ("ID", "player_id")

RATINGS_INITIAL_DELAY_SECONDS = 30.0
RATINGS_POLL_INTERVAL_SECONDS = 15.0
RATINGS_MAX_ATTEMPTS = 20
RATINGS_PENDING_PHRASES = ("still in progress",)
RATINGS_PENDING_PREFIXES = ("Request received",)
