"""Configuration, layer declarations and paths."""
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parent.parent

DATA_DIR = PROJECT_ROOT / "data"
OUTPUT_DIR = PROJECT_ROOT / "output"

# Geographic CRS every layer is brought into before analysis
WGS84 = "EPSG:4326"

BUFFER_RADIUS_KM = 1.0
BUFFER_QUAD_SEGS = 16
POPULATION_ALERT_THRESHOLD = 1000

# Census attributes on the population layer
POPULATION_FIELD = "n_per"
HOUSEHOLD_FIELD = "n_hog"

CRITICAL = "critical"
WARNING = "warning"
CLASSIFICATIONS = (CRITICAL, WARNING)

POPULATION_KEY = "population"
SUBSTATION_KEY = "substations"

MODE_MANAGEMENT = "gestion"
MODE_CITIZEN = "ciudadania"

# key, display name, classification, GeoJSON file, population weighted.
# Order here is the order of the infrastructure risk list.
LAYER_SOURCES = (
    (POPULATION_KEY, "Entidades", CRITICAL, "Entidades_2024.geojson", True),
    ("schools", "Escuelas", CRITICAL, "Escuelas.geojson", False),
    (SUBSTATION_KEY, "Subestaciones Eléc.", CRITICAL, "Subestaciones_electricas.geojson", False),
    ("water_supply", "APR (Agua)", WARNING, "Agua_potable.geojson", False),
    ("roads", "Red Vial (Tramos)", WARNING, "Red_vial.geojson", False),
    ("gas_pipeline", "Gasoducto", CRITICAL, "Gasoducto.geojson", False),
    ("oil_pipeline", "Oleoducto", CRITICAL, "Oleoducto.geojson", False),
    ("transmission_lines", "Líneas Eléctricas", CRITICAL, "Linea_transmision_electrica.geojson", False),
    ("cell_antennas", "Antenas Celular", WARNING, "Antenas_celular.geojson", False),
    ("fuel_storage", "Alm. Combustibles", CRITICAL, "Almacenamiento_combustibles.geojson", False),
)

# Selectable fire-affected areas, newest first
FIRE_SOURCES = (
    (2026, "Area_quemada_2026.geojson"),
    (2023, "Area_incendiada_2023.geojson"),
    (2017, "Area_incendiada_2017.geojson"),
)
