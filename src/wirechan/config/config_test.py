import os
import tempfile
import types
import unittest
from unittest.mock import Mock

from configobj import ConfigObj, ConfigObjError
from hamcrest import assert_that, calling, equal_to, has_entries, is_, raises

from wirechan.config.config import config_filename, config_flavor, configure_module, fetch_conf_path, \
    fq_module_name, load_config, load_config_file_base, map_os_name, os_name

schema = """
[wirechan]
    [[sample]]
    size = integer(min=1, default=10)
    enabled = boolean(default=False)
    label = string(default='plain')
"""


class ConfigTestCase(unittest.TestCase):

    def setUp(self):
        self.directory = tempfile.TemporaryDirectory()
        self.addCleanup(self.directory.cleanup)
        self.user_dir = os.path.join(self.directory.name, 'user')
        os.mkdir(self.user_dir)

    def write(self, name, content, directory=None):
        with open(config_filename(name, directory or self.directory.name), 'w') as f:
            f.write(content)

    def load(self, name='sample'):
        return load_config(name, self.directory.name, self.user_dir)

    def test_config_flavor(self):
        assert_that(config_flavor('channel'), is_('channel'))
        assert_that(config_flavor('channel', 'default'), is_('channel.default'))

    def test_config_file_not_found(self):
        assert_that(calling(load_config_file_base).with_args('blah'), raises(IOError))

    def test_missing_optional_file_is_empty(self):
        assert_that(load_config_file_base('blah', must_exist=False), is_(equal_to({})))

    def test_invalid_syntax_names_the_file(self):
        self.write('broken', '[[[nested\n')
        file = config_filename('broken', self.directory.name)
        assert_that(calling(load_config_file_base).with_args(file), raises(ConfigObjError, 'broken.cfg'))

    def test_schema_supplies_defaults_and_types(self):
        self.write('sample.schema', schema)
        self.write('sample.default', '[wirechan]\n[[sample]]\nsize = 20\n')
        conf = self.load()
        assert_that(conf['wirechan']['sample'], has_entries(size=20, enabled=False, label='plain'))

    def test_layers_override_in_order(self):
        self.write('sample.schema', schema)
        self.write('sample.default', '[wirechan]\n[[sample]]\nsize = 20\nlabel = default\n')
        self.write('sample', '[wirechan]\n[[sample]]\nsize = 30\n', self.user_dir)
        self.write('sample.' + os_name(), '[wirechan]\n[[sample]]\nlabel = platform\n')
        self.write('sample', '[wirechan]\n[[sample]]\nenabled = yes\n')
        assert_that(self.load()['wirechan']['sample'], has_entries(size=30, enabled=True, label='platform'))

    def test_validation_failure(self):
        self.write('sample.schema', schema)
        self.write('sample', '[wirechan]\n[[sample]]\nsize = 0\n')
        assert_that(calling(self.load), raises(ConfigObjError, 'the config file sample failed validation'))

    def test_without_schema_values_are_strings(self):
        self.write('sample', '[wirechan]\n[[sample]]\nsize = 5\n')
        assert_that(self.load()['wirechan']['sample']['size'], is_('5'))

    def test_configure_module(self):
        self.write('sample.schema', schema)
        self.write('sample', '[wirechan]\n[[sample]]\nsize = 3\nunknown = 1\n')
        module = types.ModuleType('wirechan.sample')
        module.__package__ = 'wirechan'
        module.__file__ = os.path.join(self.directory.name, 'sample.py')
        module.size = 1
        module.enabled = True
        configure_module(module, user_dir=self.user_dir)
        assert_that(module.size, is_(3))
        assert_that(module.enabled, is_(False))
        assert_that(hasattr(module, 'unknown'), is_(False))

    def test_map_os_name(self):
        assert_that(map_os_name('Windows'), is_('windows'))
        assert_that(map_os_name('Darwin'), is_('osx'))
        assert_that(map_os_name('darwin'), is_('osx'))

    def test_non_existent_config_path(self):
        assert_that(fetch_conf_path(ConfigObj(), ['wirechan', 'nothing']), is_(None))

    def test_fq_module_name_with_name(self):
        module = Mock()
        module.__name__ = 'one.two.three'
        module.__package__ = 'one.two'
        assert_that(fq_module_name(module), is_('one.two.three'))

    def test_fq_module_name_as_main(self):
        module = Mock()
        module.__name__ = '__main__'
        module.__package__ = 'one.two'
        module.__file__ = '/some/place/one/two/three.py'
        assert_that(fq_module_name(module), is_('one.two.three'))

    def test_fq_module_name_no_package(self):
        module = Mock()
        module.__package__ = None
        assert_that(calling(fq_module_name).with_args(module), raises(ConfigObjError, '.*no package'))


if __name__ == '__main__':  # pragma no cover
    unittest.main()
