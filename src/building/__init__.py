"""Structure planning: templates, layouts, site search, placement protocol."""

from .templates import StructureKind, StructureTemplate, UnknownStructure, load_structure_templates
from .layouts import Footprint, generate_layout
from .site import SiteFinder, SiteSelection
from .placement import PlacementRunner
from .planner import BuildPlan, StructurePlanner

__all__ = [
    "StructureKind",
    "StructureTemplate",
    "UnknownStructure",
    "load_structure_templates",
    "Footprint",
    "generate_layout",
    "SiteFinder",
    "SiteSelection",
    "PlacementRunner",
    "BuildPlan",
    "StructurePlanner",
]
