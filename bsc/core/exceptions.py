class ScorecardContractError(ValueError):
    """Excepción base para violaciones de contrato (datos mal formados)."""

    def __init__(self, detail: str = "Datos de entrada inválidos"):
        self.detail = detail
        super().__init__(detail)


class MissingTargetError(ScorecardContractError):
    """Asignación de KPI sin meta (targetGoal)."""

    def __init__(self, detail: str = "La asignación de KPI no tiene meta definida"):
        super().__init__(detail)


class InvalidMeasurementError(ScorecardContractError):
    """Valor medido no numérico o no finito."""

    def __init__(self, detail: str = "Valor de medición inválido"):
        super().__init__(detail)


class UnknownObjectiveError(ScorecardContractError):
    """Objetivo inexistente."""

    def __init__(self, detail: str = "Objetivo no encontrado"):
        super().__init__(detail)


class UnknownPerspectiveError(ScorecardContractError):
    """Perspectiva inexistente en la configuración de la empresa."""

    def __init__(self, detail: str = "Perspectiva no encontrada"):
        super().__init__(detail)


class UnknownDepartmentError(ScorecardContractError):
    """Departamento inexistente."""

    def __init__(self, detail: str = "Departamento no encontrado"):
        super().__init__(detail)


class InvalidPeriodError(ScorecardContractError):
    """Periodo de reporte con formato inválido."""

    def __init__(self, detail: str = "Periodo inválido"):
        super().__init__(detail)


class UnknownAllocationError(ScorecardContractError):
    """Asignación de KPI inexistente."""

    def __init__(self, detail: str = "Asignación de KPI no encontrada"):
        super().__init__(detail)
