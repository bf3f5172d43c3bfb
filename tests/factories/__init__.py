"""Test factories."""

from tests.factories.principal import PrincipalFactory, bearer


__all__ = ["PrincipalFactory", "bearer"]
