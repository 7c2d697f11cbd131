import logging
import os
import platform

from configobj import ConfigObj, ConfigObjError, Section
from validate import Validator

logger = logging.getLogger(__name__)

# The default extension for configuration files
config_extension = '.cfg'

# per-user overrides live here, named after the configuration
user_config_dir = os.path.join('~', '.wirechan')


def config_flavor(name, flavor=None):
    return name if not flavor else name + '.' + flavor


def config_filename(name, directory=None):
    """
    The path of a configuration file within a directory.
    >>> config_filename('channel', 'conf').replace(os.sep, '/')
    'conf/channel.cfg'
    """
    return os.path.join(directory, name + config_extension)


def load_config_file_base(file, must_exist=True) -> ConfigObj:
    """
    Loads a configuration file
    :param file:        The configuration file to load
    :param must_exist:  when True, the file must exist or an exception is thrown.
    :return: The ConfigObj instance for the file, empty if the file doesn't exist.
    """
    try:
        return ConfigObj(file, interpolation='Template', file_error=must_exist) \
            if must_exist or os.path.exists(file) else ConfigObj()
    except ConfigObjError as e:
        raise type(e)(str(e) + ' at ' + file)


def config_flavor_file(name, directory, flavor=None) -> ConfigObj:
    """
    Loads a specialization of a config file, named after the base followed by a period and the
    specialization (`channel.default.cfg`), or just the base name when there is no specialization.
    Missing files give an empty configuration.
    """
    return load_config_file_base(config_filename(config_flavor(name, flavor), directory), False)


def map_os_name(name):
    """
    >>> map_os_name('Windows')
    'windows'
    >>> map_os_name("Darwin")
    'osx'
    """
    name = name.lower()
    if name == 'darwin':
        name = 'osx'
    return name


def os_name():
    return map_os_name(platform.system())


def load_config(name, directory, user_dir=None) -> ConfigObj:
    """
    Loads all the configuration files that relate to the given name. Later files override earlier ones:
    - the default specialization
    - the platform specialization
    - the user override, from the user configuration directory
    - the base configuration
    The result is validated against the "schema" specialization, which also supplies the
    type conversions and any defaults missing from all the files.
    :param directory: the location of the configuration files
    :param user_dir: the location of the user override. Defaults to ~/.wirechan
    """
    user_dir = os.path.expanduser(user_dir if user_dir is not None else user_config_dir)
    schema = config_filename(config_flavor(name, 'schema'), directory)
    config = ConfigObj(configspec=schema if os.path.exists(schema) else None)
    config.merge(config_flavor_file(name, directory, 'default'))
    config.merge(config_flavor_file(name, directory, os_name()))
    config.merge(config_flavor_file(name, user_dir))
    config.merge(config_flavor_file(name, directory))

    if config.configspec is None:
        return config
    result = config.validate(Validator())
    if result is not True:
        raise ConfigObjError("the config file %s failed validation %s" % (name, result))
    return config


def fetch_conf_path(conf: Section, path):
    """
    Retrieves the named configuration section
    :param conf:   The root configuration
    :param path:   An iterable that lists the names of the nested sections to resolve
    :return: The configuration section identified by the path, or None
    """
    for p in path:
        conf = conf.get(p, None)
        if conf is None:
            return None
    return conf


def apply_conf(conf: Section, target):
    """
    Sets the attributes of a target object from a configuration section. Only attributes the target
    already has are set; other keys are ignored.
    """
    for k in conf.scalars:
        if hasattr(target, k):
            setattr(target, k, conf[k])
        else:
            logger.debug("ignoring unknown setting '%s' for %s", k, target)


def fq_module_name(module):
    """
    Retrieves the fully qualified name of the module.
    """
    if not module.__package__:
        raise ConfigObjError('module has no package defined')
    if module.__name__ != '__main__':
        return module.__name__
    # run as a script: rebuild the name from the package and the file name
    return module.__package__ + '.' + os.path.splitext(os.path.basename(module.__file__))[0]


def configure_module(module, config_name=None, directory=None, user_dir=None):
    """
    Applies configuration to the module-level settings of a module.
    The configuration files are named after the module (or config_name) and sit beside the module
    source file, unless another directory is given. Within the files, the settings are nested in
    sections following the module's package path, e.g. [wirechan] [[protocol]] [[[channel]]]
    """
    fqname = fq_module_name(module)
    if not config_name:
        config_name = fqname.split('.')[-1]
    if directory is None:
        directory = os.path.dirname(module.__file__)
    conf = load_config(config_name, directory, user_dir)
    section = fetch_conf_path(conf, fqname.split('.'))
    if section:
        apply_conf(section, module)
