from dishka import Provider as _DishkaProvider


class Provider(_DishkaProvider):
    """Base for all DI providers."""
