"""Seed data: roles and the Argentine geography."""

from domus.models.user import RoleName

ROLES = [role.value for role in RoleName]

COUNTRIES = [
    {
        "name": "Argentina",
        "iso_code": "AR",
        "phone_prefix": "+54",
        "currency_code": "ARS",
        "currency_symbol": "$",
        "latitude": -38.4161,
        "longitude": -63.6167,
        "default_zoom": 4,
    },
]

# INDEC province codes with their centroids
AR_PROVINCES = [
    ("02", "Ciudad Autónoma de Buenos Aires", -34.6144420654301, -58.4458763250916),
    ("06", "Buenos Aires", -36.6773920760823, -60.5584771084959),
    ("10", "Catamarca", -27.3359537960762, -66.9478972451295),
    ("14", "Córdoba", -32.1447993873859, -63.801973466573),
    ("18", "Corrientes", -28.7742044813623, -57.8010818603331),
    ("22", "Chaco", -26.3869871835867, -60.765116260356),
    ("26", "Chubut", -43.7886271389083, -68.5267363339818),
    ("30", "Entre Ríos", -32.0589278938558, -59.201262616496),
    ("34", "Formosa", -24.8950871761481, -59.9321901121647),
    ("38", "Jujuy", -23.3199750616583, -65.764423919292),
    ("42", "La Pampa", -37.1350652212898, -65.4476439990213),
    ("46", "La Rioja", -29.6849372775783, -67.1817575814487),
    ("50", "Mendoza", -34.6303887067166, -68.5829456019867),
    ("54", "Misiones", -26.8753025989034, -54.6515705627219),
    ("58", "Neuquén", -38.6419828626673, -70.1198972237318),
    ("62", "Río Negro", -40.4050796306359, -67.2296757996036),
    ("66", "Salta", -24.2992838957201, -64.8141586574346),
    ("70", "San Juan", -30.8656607015096, -68.8881597071776),
    ("74", "San Luis", -33.7611035381154, -66.0252312714021),
    ("78", "Santa Cruz", -48.8155471830527, -69.9557619144913),
    ("82", "Santa Fe", -30.7088227091528, -60.9506872769706),
    ("86", "Santiago del Estero", -27.7834318817521, -63.2526268856462),
    ("90", "Tucumán", -26.948283501723, -65.3647655803683),
    ("94", "Tierra del Fuego", -82.5211345211545, -50.7428606764691),
]

PROVINCE_DEFAULT_ZOOM = 10
