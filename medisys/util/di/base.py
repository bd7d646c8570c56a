from dishka import Provider as DishkaProvider

from medisys.util.di.scope import Scope


class Provider(DishkaProvider):
    """Base for all MediSys DI providers. Bindings default to APP scope."""

    scope = Scope.APP
