from pprint import pformat

from kube_waste.core.abstract import formatters
from kube_waste.core.models.result import Result


@formatters.register()
def pprint(result: Result) -> str:
    return pformat(result.model_dump(mode="json"), sort_dicts=False)
