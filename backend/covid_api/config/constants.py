"""
Domain constants shared across services, jobs and seed scripts.
"""

# (name, code, population, area_km2, capital)
KOSOVO_REGIONS = [
    ("Pristina", "PR", 477312, 2470.00, "Pristina"),
    ("Mitrovica", "MI", 197647, 2077.00, "Mitrovica"),
    ("Peja", "PE", 179136, 1365.00, "Peja"),
    ("Prizren", "PZ", 331670, 1397.00, "Prizren"),
    ("Ferizaj", "FE", 185506, 1030.00, "Ferizaj"),
    ("Gjilan", "GJ", 194190, 1212.00, "Gjilan"),
    ("Gjakova", "GK", 194672, 1129.00, "Gjakova"),
]

VACCINE_TYPES = ["Pfizer-BioNTech", "AstraZeneca", "Johnson & Johnson", "Moderna"]
DEFAULT_VACCINE_TYPE = "Unspecified"

AGE_GROUPS = ["0-9", "10-19", "20-29", "30-39", "40-49", "50-59", "60-69", "70-79", "80+"]

# =============================================================================
# DATA SOURCES
# =============================================================================

SOURCE_WHO = "WHO Global Data"
SOURCE_DISEASE_SH = "Disease.sh API"
SOURCE_MOH = "Kosovo Ministry of Health"

# Rows the automation service writes its own status to
SOURCE_CASE_SIMULATION = "Kosovo Health Ministry Simulation"
SOURCE_HOSPITAL_SIMULATION = "Hospital Capacity Simulation"
SOURCE_VACCINATION_SIMULATION = "Vaccination Simulation"
SOURCE_DAILY_STATISTICS = "Daily Statistics Job"
SOURCE_WEEKLY_REPORT = "Weekly Report Job"

SIMULATION_SOURCES = [
    (SOURCE_CASE_SIMULATION, "30 minutes"),
    (SOURCE_HOSPITAL_SIMULATION, "30 minutes"),
    (SOURCE_VACCINATION_SIMULATION, "30 minutes"),
    (SOURCE_DAILY_STATISTICS, "daily"),
    (SOURCE_WEEKLY_REPORT, "weekly"),
]

# =============================================================================
# AUTOMATION
# =============================================================================

JOB_DATA_UPDATE = "data_update"
JOB_DAILY_STATS = "daily_stats"
JOB_WEEKLY_REPORT = "weekly_report"

DAILY_STATS_CRON = "0 0 * * *"
WEEKLY_REPORT_CRON = "0 23 * * 0"

# Inclusive bounds for the synthetic per-region deltas
NEW_CASES_RANGE = (10, 59)
NEW_DEATHS_RANGE = (0, 2)
NEW_RECOVERED_RANGE = (20, 59)
FIRST_DOSE_RANGE = (20, 119)
SECOND_DOSE_RANGE = (15, 94)
BOOSTER_DOSE_RANGE = (10, 69)

# (low, spread) occupancy fractions of capacity
COVID_OCCUPANCY = (0.3, 0.4)
ICU_OCCUPANCY = (0.5, 0.3)
TOTAL_OCCUPANCY = (0.6, 0.3)
VENTILATOR_OCCUPANCY = (0.2, 0.5)

MOVING_AVERAGE_WINDOW = 7
TREND_LOOKBACK_DAYS = 30
WEEKLY_REPORT_DAYS = 7

# =============================================================================
# METRICS
# =============================================================================

TREND_THRESHOLD_PCT = 5.0

# Hours since last write
FRESH_HOURS = 24
STALE_HOURS = 72

FRESHNESS_TABLES = ["covid_cases", "vaccinations", "hospitals", "testing_data"]
MONITORED_TABLES = [
    "regions",
    "municipalities",
    "covid_cases",
    "hospitals",
    "vaccinations",
    "testing_centers",
    "testing_data",
    "age_groups",
    "data_sources",
]
