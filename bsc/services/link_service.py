"""
Reglas de topología del mapa estratégico.

Cada objetivo vive en el carril de su perspectiva (sort_order 1 = arriba).
Las flechas causales van de carriles inferiores a superiores, nunca dentro
del mismo carril y saltando como máximo un carril intermedio.
"""

import logging
from typing import Dict, Iterable, List, Optional, Sequence

from bsc.core.exceptions import UnknownObjectiveError
from bsc.schemas.link import ConnectivityReport, LinkRule, LinkValidationResult
from bsc.schemas.strategic import CompanyConfig, Objective, ObjectiveLink

logger = logging.getLogger(__name__)

LINK_MESSAGES = {
    LinkRule.HORIZONTAL: "No se permiten flechas entre objetivos de la misma perspectiva",
    LinkRule.DOWNWARD: "La flecha debe ir de abajo hacia arriba",
    LinkRule.JUMP_EXCEEDED: "La flecha solo puede saltar como máximo {max_jump} niveles de perspectiva",
    LinkRule.DUPLICATE: "La relación causal ya existe",
}


class LinkValidator:
    def __init__(self, config: CompanyConfig):
        self.config = config

    def lane_of(self, objective: Objective) -> int:
        return self.config.perspective(objective.perspective_id).sort_order

    def validate_link(
        self,
        from_objective_id: int,
        to_objective_id: int,
        objectives: Iterable[Objective],
        existing_links: Optional[Iterable[ObjectiveLink]] = None,
    ) -> LinkValidationResult:
        by_id = {o.id: o for o in objectives}
        for objective_id in (from_objective_id, to_objective_id):
            if objective_id not in by_id:
                logger.warning("Relación causal con objetivo inexistente %s", objective_id)
                raise UnknownObjectiveError(f"Objetivo {objective_id} no encontrado")

        from_lane = self.lane_of(by_id[from_objective_id])
        to_lane = self.lane_of(by_id[to_objective_id])
        jump = from_lane - to_lane

        if from_lane == to_lane:
            return self._reject(LinkRule.HORIZONTAL, jump)
        if from_lane < to_lane:
            return self._reject(LinkRule.DOWNWARD, jump)
        if jump > self.config.max_lane_jump:
            return self._reject(LinkRule.JUMP_EXCEEDED, jump)

        for link in existing_links or ():
            if (link.from_objective_id, link.to_objective_id) == (from_objective_id, to_objective_id):
                return self._reject(LinkRule.DUPLICATE, jump)

        return LinkValidationResult(valid=True, jump=jump)

    def _reject(self, rule: LinkRule, jump: int) -> LinkValidationResult:
        reason = LINK_MESSAGES[rule].format(max_jump=self.config.max_lane_jump)
        logger.debug("Relación causal rechazada (%s): salto=%d", rule.value, jump)
        return LinkValidationResult(valid=False, rule=rule, reason=reason, jump=jump)

    def check_connectivity(
        self, objectives: Sequence[Objective], links: Iterable[ObjectiveLink]
    ) -> ConnectivityReport:
        """Objetivos sin flecha saliente (salvo carril superior) o entrante (salvo inferior)."""
        by_id: Dict[int, Objective] = {o.id: o for o in objectives}
        outgoing = set()
        incoming = set()
        for link in links:
            for objective_id in (link.from_objective_id, link.to_objective_id):
                if objective_id not in by_id:
                    raise UnknownObjectiveError(
                        f"La relación {link.id} apunta al objetivo inexistente {objective_id}"
                    )
            outgoing.add(link.from_objective_id)
            incoming.add(link.to_objective_id)

        top = self.config.top_sort_order
        bottom = self.config.bottom_sort_order
        missing_outgoing: List[int] = []
        missing_incoming: List[int] = []
        for objective_id in sorted(by_id):
            lane = self.lane_of(by_id[objective_id])
            if lane != top and objective_id not in outgoing:
                missing_outgoing.append(objective_id)
            if lane != bottom and objective_id not in incoming:
                missing_incoming.append(objective_id)

        report = ConnectivityReport(
            missing_outgoing=missing_outgoing,
            missing_incoming=missing_incoming,
            disconnected_objective_ids=sorted(set(missing_outgoing) | set(missing_incoming)),
        )
        if not report.is_connected:
            logger.info(
                "Mapa estratégico con %d objetivos sin conexión",
                len(report.disconnected_objective_ids),
            )
        return report
