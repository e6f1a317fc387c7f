from kube_waste.core.abstract import formatters
from kube_waste.core.models.result import Result


@formatters.register()
def json(result: Result) -> str:
    return result.model_dump_json(indent=2)
