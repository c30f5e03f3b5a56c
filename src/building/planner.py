# src/building/planner.py
"""
Structure planner: structure kind + agent position -> Plan.

- plan_build(kind): site search (or clearing fallback), then one PLACE
  step per layout cell in layout order, preceded by DIG steps when the
  site had to be cleared
- plan_repair(kind, anchor): PLACE steps for layout cells that are
  currently not solid
- layout_cells(kind, anchor): the absolute, ordered cell list

Material policy: the primary material is the first template material
held, else the most plentiful valid building block held, else the first
template material (so the shortage surfaces during execution). Every
PLACE step carries the template's ranked list as substitutes.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Union

from execution.plan import Plan, ResourceRequirement, Step, StepKind
from settings.schema import BuildSettings
from world.blocks import is_solid
from world.interface import WorldAgent
from world.inventory import building_materials, inventory_counts
from world.types import Position

from .layouts import Footprint, generate_layout
from .site import SiteFinder, SiteSelection
from .templates import StructureKind, StructureTemplate, UnknownStructure


log = logging.getLogger(__name__)


@dataclass
class BuildPlan:
    kind: StructureKind
    template: StructureTemplate
    anchor: Position
    material: str
    plan: Plan
    site: Optional[SiteSelection] = None
    placements: int = 0
    digs: int = 0
    missing: List[Position] = field(default_factory=list)


class StructurePlanner:
    def __init__(
        self,
        world: WorldAgent,
        templates: Dict[StructureKind, StructureTemplate],
        *,
        config: BuildSettings | None = None,
    ) -> None:
        self._world = world
        self._templates = dict(templates)
        self._cfg = config if config is not None else BuildSettings()
        self._sites = SiteFinder(
            world,
            search_radius=self._cfg.search_radius,
            ground_probe_depth=self._cfg.ground_probe_depth,
            protected=self._cfg.protected_blocks,
        )

    @property
    def sites(self) -> SiteFinder:
        return self._sites

    def template(self, kind: Union[StructureKind, str]) -> StructureTemplate:
        if isinstance(kind, str):
            kind = StructureKind.parse(kind)
        try:
            return self._templates[kind]
        except KeyError:
            raise UnknownStructure(f"no template for {kind.value}") from None

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def layout_cells(self, kind: Union[StructureKind, str], anchor: Position) -> List[Position]:
        return [anchor + off for off in generate_layout(self.template(kind))]

    def plan_build(
        self,
        kind: Union[StructureKind, str],
        anchor: Optional[Position] = None,
    ) -> BuildPlan:
        template = self.template(kind)
        offsets = generate_layout(template)

        site: Optional[SiteSelection] = None
        if anchor is None:
            site = self._sites.find(Footprint.of(offsets))
            anchor = site.anchor

        material = self.primary_material(template)
        steps: List[Step] = []
        if site is not None and site.cleared:
            steps.extend(
                Step(kind=StepKind.DIG, target=cell, label=f"clear {cell}") for cell in site.clear_cells
            )
        digs = len(steps)
        steps.extend(self._placement_step(template, anchor + off, material) for off in offsets)

        plan = Plan.of(f"build-{template.kind.value}", steps)
        log.info(
            "Planned %s at %s: %d placements, %d digs, material %s",
            template.kind.value,
            anchor,
            len(offsets),
            digs,
            material,
        )
        return BuildPlan(
            kind=template.kind,
            template=template,
            anchor=anchor,
            material=material,
            plan=plan,
            site=site,
            placements=len(offsets),
            digs=digs,
        )

    def plan_repair(self, kind: Union[StructureKind, str], anchor: Position) -> BuildPlan:
        template = self.template(kind)
        material = self.primary_material(template)
        missing: List[Position] = []
        for cell in self.layout_cells(template.kind, anchor):
            block = self._world.query_block(cell)
            # Unloaded cells are left alone; they cannot be judged.
            if block is not None and not is_solid(block):
                missing.append(cell)
        plan = Plan.of(
            f"repair-{template.kind.value}",
            (self._placement_step(template, cell, material) for cell in missing),
        )
        return BuildPlan(
            kind=template.kind,
            template=template,
            anchor=anchor,
            material=material,
            plan=plan,
            placements=len(missing),
            missing=missing,
        )

    def primary_material(self, template: StructureTemplate) -> str:
        counts = inventory_counts(self._world.query_inventory())
        ranked = building_materials(counts, template.materials)
        return ranked[0] if ranked else template.materials[0]

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    @staticmethod
    def _placement_step(template: StructureTemplate, cell: Position, material: str) -> Step:
        return Step(
            kind=StepKind.PLACE,
            target=cell,
            resource=ResourceRequirement(material, 1),
            label=f"place {material} at {cell}",
            params={"substitutes": template.materials},
        )
