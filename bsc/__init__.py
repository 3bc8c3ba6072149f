"""
Motor de Balanced Scorecard: validación de pesos, cálculo de desempeño de
KPIs, agregación jerárquica, reglas del mapa estratégico y ranking.
"""

__version__ = "1.0.0"
