"""
Generation-time errors
"""


class GenerationError(ValueError):
    """Raised when the component model cannot be rendered.

    Carries the identity of the offending declaration so the message and the
    caller can both point at it.
    """

    def __init__(self, message: str, class_name: str = None, method_name: str = None,
                 param_name: str = None, struct_name: str = None):
        super().__init__(message)
        self.class_name = class_name
        self.method_name = method_name
        self.param_name = param_name
        self.struct_name = struct_name

    @classmethod
    def for_param(cls, message: str, class_name: str, method_name: str, param_name: str):
        """Build an error that names class, method and parameter"""
        owner = f"{class_name}.{method_name}" if class_name else method_name
        return cls(
            f"{message} for {owner} ({param_name})",
            class_name=class_name,
            method_name=method_name,
            param_name=param_name,
        )
