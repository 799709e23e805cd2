class FundFlowError(Exception):
    pass


class GraphStoreError(FundFlowError):
    pass


class StartNodeNotFoundError(FundFlowError):
    pass
