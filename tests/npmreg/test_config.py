import os, sys, pdb, json, logging
import unittest as test

from npmreg.testing import *
from npmreg import config as cfgmod
from npmreg.exceptions import ConfigurationException

def setUpModule():
    ensure_tmpdir()

def tearDownModule():
    rmtmpdir()

class TestLoadFromFile(test.TestCase):

    def setUp(self):
        self.tf = Tempfiles()

    def tearDown(self):
        self.tf.clean()

    def test_yaml(self):
        cfgfile = self.tf("npmreg.yml")
        with open(cfgfile, 'w') as fd:
            fd.write("path_prefix: https://registry.example.com/\n")
            fd.write("cmd:\n  update:\n    logfile: update.log\n")
        cfg = cfgmod.load_from_file(cfgfile)
        self.assertEqual(cfg['path_prefix'], "https://registry.example.com/")
        self.assertEqual(cfg['cmd']['update']['logfile'], "update.log")

    def test_json(self):
        cfgfile = self.tf("npmreg.json")
        with open(cfgfile, 'w') as fd:
            json.dump({"path_prefix": "/npm/"}, fd)
        self.assertEqual(cfgmod.load_from_file(cfgfile), {"path_prefix": "/npm/"})

    def test_empty(self):
        cfgfile = self.tf("empty.yaml")
        with open(cfgfile, 'w') as fd:
            pass
        self.assertEqual(cfgmod.load_from_file(cfgfile), {})

    def test_errors(self):
        with self.assertRaises(ConfigurationException):
            cfgmod.load_from_file(self.tf("missing.yml"))

        cfgfile = self.tf("bad.yml")
        with open(cfgfile, 'w') as fd:
            fd.write("goob: [gurn\n")
        with self.assertRaises(ConfigurationException):
            cfgmod.load_from_file(cfgfile)

        cfgfile = self.tf("list.json")
        with open(cfgfile, 'w') as fd:
            fd.write("[1, 2]")
        with self.assertRaises(ConfigurationException):
            cfgmod.load_from_file(cfgfile)

        cfgfile = self.tf("config.txt")
        with open(cfgfile, 'w') as fd:
            fd.write("path_prefix: /npm/")
        with self.assertRaises(ConfigurationException):
            cfgmod.load_from_file(cfgfile)

class TestConfigFunctions(test.TestCase):

    def test_merge_config(self):
        defs = {"a": 1, "b": {"c": 2, "d": 3}, "e": [1]}
        prim = {"b": {"c": 5, "f": 6}, "e": [2], "g": 7}
        out = cfgmod.merge_config(prim, defs)
        self.assertEqual(out, {"a": 1, "b": {"c": 5, "d": 3, "f": 6}, "e": [2], "g": 7})
        self.assertEqual(defs, {"a": 1, "b": {"c": 2, "d": 3}, "e": [1]})
        self.assertEqual(prim, {"b": {"c": 5, "f": 6}, "e": [2], "g": 7})

    def test_path_prefix_from(self):
        self.assertIsNone(cfgmod.path_prefix_from({}))
        self.assertIsNone(cfgmod.path_prefix_from(None))
        self.assertEqual(cfgmod.path_prefix_from({"path_prefix": "/npm/"}), "/npm/")
        self.assertEqual(cfgmod.path_prefix_from({"path_prefix": ""}), "")
        with self.assertRaises(ConfigurationException):
            cfgmod.path_prefix_from({"path_prefix": 3})

    def test_normal_level(self):
        self.assertGreater(cfgmod.NORMAL, logging.DEBUG)
        self.assertLess(cfgmod.NORMAL, logging.INFO)
        self.assertEqual(logging.getLevelName(cfgmod.NORMAL), "NORMAL")

class TestConfigureLog(test.TestCase):

    def setUp(self):
        self.tf = Tempfiles()
        self.rootlog = logging.getLogger()
        self.hdlrs = list(self.rootlog.handlers)
        self.level = self.rootlog.level

    def tearDown(self):
        for h in list(self.rootlog.handlers):
            if h not in self.hdlrs:
                self.rootlog.removeHandler(h)
                h.close()
        self.rootlog.setLevel(self.level)
        self.tf.clean()

    def test_configure_log(self):
        logdir = self.tf.mkdir("logs")
        cfgmod.configure_log(config={"logdir": logdir, "logfile": "test.log"})
        self.assertEqual(cfgmod.global_logfile, os.path.join(logdir, "test.log"))
        self.assertEqual(cfgmod.global_logdir, logdir)

        logging.getLogger("npmreg.test").log(cfgmod.NORMAL, "hello")
        logging.getLogger("npmreg.test").debug("goodbye")
        with open(os.path.join(logdir, "test.log")) as fd:
            content = fd.read()
        self.assertIn("hello", content)
        self.assertNotIn("goodbye", content)

    def test_level_name(self):
        logdir = self.tf.mkdir("logs")
        cfgmod.configure_log(config={"logdir": logdir, "loglevel": "debug"})
        self.assertEqual(cfgmod.global_logfile, os.path.join(logdir, "npmreg.log"))
        with self.assertRaises(ConfigurationException):
            cfgmod.configure_log(config={"logdir": logdir, "loglevel": "goober"})

    def test_bad_logdir(self):
        with self.assertRaises(ConfigurationException):
            cfgmod.configure_log(config={"logdir": self.tf("notthere")})


if __name__ == '__main__':
    test.main()
