"""Taxon registry: snapshot files and GBIF classification keys per group.

Estimated described-species figures are from IUCN Red List Table 1a
(version 2025-2).
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum

from redlist_explorer.errors import UnknownTaxonError

IUCN_SOURCE = "IUCN 2025-2"
IUCN_SOURCE_URL = (
    "https://nc.iucnredlist.org/redlist/content/attachment_files/2025-2_RL_Table1a.pdf"
)


@dataclass(frozen=True)
class TaxonConfig:
    """One taxonomic group served by the API.

    ``data_file`` is the snapshot for the group. Composite groups also list
    ``data_files``, the per-subgroup snapshots that are merged when the
    combined file does not exist.
    """

    id: str
    name: str
    data_file: str
    occurrence_file: str
    estimated_described: int
    color: str
    data_files: tuple[str, ...] = ()
    kingdom_key: int | None = None
    class_keys: tuple[int, ...] = ()
    order_keys: tuple[int, ...] = ()
    estimated_source: str = IUCN_SOURCE
    estimated_source_url: str = IUCN_SOURCE_URL

    @property
    def is_composite(self) -> bool:
        return bool(self.data_files)


TAXA: tuple[TaxonConfig, ...] = (
    TaxonConfig(
        id="all",
        name="All Species",
        data_file="redlist-all.json",
        data_files=(
            "redlist-mammalia.json",
            "redlist-aves.json",
            "redlist-reptilia.json",
            "redlist-amphibia.json",
            "redlist-actinopterygii.json",
            "redlist-chondrichthyes.json",
            "redlist-insecta.json",
            "redlist-arachnida.json",
            "redlist-gastropoda.json",
            "redlist-bivalvia.json",
            "redlist-malacostraca.json",
            "redlist-anthozoa.json",
            "redlist-plantae.json",
            "redlist-ascomycota.json",
            "redlist-basidiomycota.json",
        ),
        occurrence_file="gbif-all.csv",
        estimated_described=2_174_939,
        color="#dc2626",
    ),
    TaxonConfig(
        id="mammalia",
        name="Mammals",
        data_file="redlist-mammalia.json",
        occurrence_file="gbif-mammalia.csv",
        estimated_described=6_819,
        kingdom_key=1,
        class_keys=(359,),
        color="#f97316",
    ),
    TaxonConfig(
        id="aves",
        name="Birds",
        data_file="redlist-aves.json",
        occurrence_file="gbif-aves.csv",
        estimated_described=11_185,
        kingdom_key=1,
        class_keys=(212,),
        color="#3b82f6",
    ),
    TaxonConfig(
        id="reptilia",
        name="Reptiles",
        data_file="redlist-reptilia.json",
        occurrence_file="gbif-reptilia.csv",
        estimated_described=12_502,
        kingdom_key=1,
        # GBIF splits Reptilia into Squamata, Crocodylia, Testudines
        class_keys=(11592253, 11493978, 11418114),
        color="#84cc16",
    ),
    TaxonConfig(
        id="amphibia",
        name="Amphibians",
        data_file="redlist-amphibia.json",
        occurrence_file="gbif-amphibia.csv",
        estimated_described=8_918,
        kingdom_key=1,
        class_keys=(131,),
        color="#14b8a6",
    ),
    TaxonConfig(
        id="fishes",
        name="Fishes",
        data_file="redlist-fishes.json",
        data_files=("redlist-actinopterygii.json", "redlist-chondrichthyes.json"),
        occurrence_file="gbif-fishes.csv",
        estimated_described=37_288,
        kingdom_key=1,
        # Elasmobranchii + Holocephali; ray-finned fish have no class in GBIF
        class_keys=(121, 120),
        order_keys=(
            389, 391, 427, 428, 446, 494, 495, 496, 497, 498, 499, 537, 538, 547, 548,
            549, 550, 587, 588, 589, 590, 696, 708, 742, 752, 753, 772, 773, 774, 781,
            836, 848, 857, 860, 861, 888, 889, 890, 898, 929, 975, 976, 1067, 1153, 1313,
        ),
        color="#06b6d4",
    ),
    TaxonConfig(
        id="invertebrates",
        name="Invertebrates",
        data_file="redlist-invertebrates.json",
        data_files=(
            "redlist-insecta.json",
            "redlist-arachnida.json",
            "redlist-gastropoda.json",
            "redlist-bivalvia.json",
            "redlist-malacostraca.json",
            "redlist-anthozoa.json",
        ),
        occurrence_file="gbif-invertebrates.csv",
        estimated_described=1_508_442,
        kingdom_key=1,
        class_keys=(216, 367, 225, 137, 229, 206),
        color="#78716c",
    ),
    TaxonConfig(
        id="plantae",
        name="Plants",
        data_file="redlist-plantae.json",
        occurrence_file="gbif-plantae.csv",
        estimated_described=426_132,
        kingdom_key=6,
        color="#22c55e",
    ),
    TaxonConfig(
        id="fungi",
        name="Fungi",
        data_file="redlist-fungi.json",
        data_files=("redlist-ascomycota.json", "redlist-basidiomycota.json"),
        occurrence_file="gbif-fungi.csv",
        estimated_described=162_653,
        kingdom_key=5,
        color="#d97706",
    ),
)

TAXA_BY_ID: dict[str, TaxonConfig] = {t.id: t for t in TAXA}

#: Meta-group that merges every other group's files.
ALL_TAXA_ID = "all"


def get_taxon(taxon_id: str) -> TaxonConfig:
    """Look up a taxon by id; unknown ids raise ``UnknownTaxonError``."""
    try:
        return TAXA_BY_ID[taxon_id]
    except KeyError:
        raise UnknownTaxonError(taxon_id) from None


def subgroup_for_file(file_name: str) -> str:
    """Id of the (non-meta) group that owns a snapshot file, else ``"all"``."""
    for taxon in TAXA:
        if taxon.id == ALL_TAXA_ID:
            continue
        if file_name == taxon.data_file or file_name in taxon.data_files:
            return taxon.id
    return ALL_TAXA_ID


# =============================================================================
# Red List categories
# =============================================================================


class Category(StrEnum):
    """IUCN Red List categories, most threatened first."""

    EX = "EX"
    EW = "EW"
    CR = "CR"
    EN = "EN"
    VU = "VU"
    NT = "NT"
    LC = "LC"
    DD = "DD"
    NE = "NE"


#: Synthetic bucket for species with no assessment in the snapshot.
NOT_EVALUATED = Category.NE

CATEGORY_ORDER: tuple[Category, ...] = tuple(Category)

CATEGORY_NAMES: dict[str, str] = {
    "EX": "Extinct",
    "EW": "Extinct in the Wild",
    "CR": "Critically Endangered",
    "EN": "Endangered",
    "VU": "Vulnerable",
    "NT": "Near Threatened",
    "LC": "Least Concern",
    "DD": "Data Deficient",
    "NE": "Not Evaluated",
}

CATEGORY_COLORS: dict[str, str] = {
    "EX": "#000000",
    "EW": "#542344",
    "CR": "#d81e05",
    "EN": "#fc7f3f",
    "VU": "#f9e814",
    "NT": "#cce226",
    "LC": "#60c659",
    "DD": "#6b7280",
    "NE": "#a3a3a3",
}
