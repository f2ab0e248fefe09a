class ConfigError(Exception):
    pass


class BindError(Exception):
    pass


class ConnectError(Exception):
    pass


class RelayError(Exception):
    pass


class ClientAlreadyExistsError(Exception):
    pass


class RemovingClientThatDoesntExistError(Exception):
    pass
