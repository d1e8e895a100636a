from __future__ import annotations


class UnitMakerError(RuntimeError):
    """
    Base for every failure the front end reports as `[error] <stage>: <msg>`.
    """
    stage = "unitmaker"


class ValidationError(UnitMakerError):
    stage = "validate"


class TemplateNotFound(UnitMakerError):
    stage = "template"


class RenderError(UnitMakerError):
    stage = "render"


class EditError(UnitMakerError):
    stage = "edit"


class InstallError(UnitMakerError):
    stage = "install"


class PermissionDenied(InstallError):
    pass


class SystemdNotAvailable(UnitMakerError):
    stage = "systemctl"


class SystemctlError(UnitMakerError):
    stage = "systemctl"
