"""
Commission parameter resolution and definition.

Resolution follows a strict priority: a parameter attached to the client
wins over one attached to its collector, which wins over one attached to
the collector's agency.
"""

import logging
from datetime import date

from .errors import InvalidRubric, NoCommissionParameterFound
from .models import Client, CommissionParameter, CommissionTier, ParameterScope, RemunerationRubric
from .store import LedgerStore
from .validators import ParameterValidator

logger = logging.getLogger(__name__)


class ParameterHierarchyResolver:
    """Resolves the effective commission parameter for a client."""

    def __init__(self, store: LedgerStore):
        self.store = store

    def resolve(self, client: Client, on_date: date) -> CommissionParameter:
        """
        Return the parameter in force on on_date for client.

        Lookups are explicit: client -> its collector -> that collector's agency.
        """
        parameter = self.store.find_parameter(ParameterScope.CLIENT, client.client_id, on_date)
        if parameter is not None:
            logger.debug(f"Using CLIENT parameter {parameter.parameter_id} for client {client.client_id}")
            return parameter

        parameter = self.store.find_parameter(ParameterScope.COLLECTOR, client.collector_id, on_date)
        if parameter is not None:
            logger.debug(f"Using COLLECTOR parameter {parameter.parameter_id} for client {client.client_id}")
            return parameter

        collector = self.store.get_collector(client.collector_id)
        parameter = self.store.find_parameter(ParameterScope.AGENCY, collector.agency_id, on_date)
        if parameter is not None:
            logger.debug(f"Using AGENCY parameter {parameter.parameter_id} for client {client.client_id}")
            return parameter

        raise NoCommissionParameterFound(
            f"No commission parameter for client {client.client_id}, collector "
            f"{client.collector_id} or agency {collector.agency_id} on {on_date}"
        )


class ParameterRegistry:
    """Write side: parameters and rubrics are validated before they are stored."""

    def __init__(self, store: LedgerStore, validator: ParameterValidator | None = None):
        self.store = store
        self.validator = validator or ParameterValidator()

    def define_parameter(self, parameter: CommissionParameter) -> CommissionParameter:
        result = self.validator.validate(parameter)
        result.raise_if_invalid()
        for warning in result.warnings:
            logger.warning(f"Commission parameter for {parameter.scope.value} {parameter.owner_id}: {warning}")

        saved = self.store.save_parameter(parameter)
        logger.info(
            f"Defined {parameter.type.value} parameter {saved.parameter_id} "
            f"for {parameter.scope.value} {parameter.owner_id}"
        )
        return saved

    def replace_tiers(self, parameter_id: int, tiers: list[CommissionTier]) -> CommissionParameter:
        """Replace a parameter's tier set; the new set is validated as a whole."""
        parameter = self.store.get_parameter(parameter_id)
        candidate = CommissionParameter(
            scope=parameter.scope,
            owner_id=parameter.owner_id,
            type=parameter.type,
            value=parameter.value,
            tiers=list(tiers),
            valid_from=parameter.valid_from,
            valid_to=parameter.valid_to,
            active=parameter.active,
            parameter_id=parameter.parameter_id,
        )
        self.validator.validate(candidate).raise_if_invalid()
        return self.store.save_parameter(candidate)

    def define_rubric(self, rubric: RemunerationRubric) -> RemunerationRubric:
        result = self.validator.validate_rubric(rubric)
        result.raise_if_invalid(InvalidRubric)
        for warning in result.warnings:
            logger.warning(f"Rubric '{rubric.name}': {warning}")
        return self.store.save_rubric(rubric)
