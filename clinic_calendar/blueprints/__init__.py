from importlib import import_module

__all__ = ["register_blueprints"]


def register_blueprints(app) -> None:
    """Register project blueprints exactly once (idempotent)."""
    modules = [
        "clinic_calendar.blueprints.appointments.routes",
        "clinic_calendar.blueprints.patients.routes",
    ]

    for mod_name in modules:
        module = import_module(mod_name)
        bp = getattr(module, "bp", None)
        if bp is None:
            app.logger.warning("Module %s exposes no blueprint", mod_name)
            continue
        if bp.name in app.blueprints:
            continue
        app.register_blueprint(bp)
