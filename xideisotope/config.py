# Copyright (C) 2025  Technische Universitaet Berlin
#
# This library is free software; you can redistribute it and/or
# modify it under the terms of the GNU Lesser General Public
# License as published by the Free Software Foundation; either
# version 3 of the License, or (at your option) any later version.
#
# This library is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the GNU
# Lesser General Public License for more details.
#
# You should have received a copy of the GNU Lesser General Public
# License along with this library; if not, write to the Free Software
# Foundation, Inc., 51 Franklin Street, Fifth Floor, Boston, MA  02110-1301
# USA

"""Configuration for deisotoping peak lists."""
import json
import yaml
import re
import copy

# Unique sentinel, used to allow None to be a valid default for a setting.
NO_DEFAULT = object()


class Setting:
    """A setting supported by the config system."""

    def __init__(self, type, default=NO_DEFAULT, valid_values=None, required=True, max_value=None):
        """
        Initialise the Setting.

        :param type: Python type expected for this setting.
        :param default: Default value for this setting.
        :param valid_values: Tuple of accepted values, re pattern, or None to accept any value.
        :param max_value: Maximum value of setting (for float or int types)
        """
        self.type = type
        self.valid_values = valid_values
        if max_value is not None and not any([issubclass(self.type, int),
                                              issubclass(self.type, float)]):
            raise TypeError("max_value is only supported for int and float type.")
        self.max_value = max_value
        if default is not NO_DEFAULT:
            try:
                self.default = self.accept(default)
            except TypeError:
                raise TypeError("Default '%s' is not valid and could not be coerced "
                                "into the expected type (%s)" % (repr(default),
                                                                 repr(self.type))) from None
            self.required = False
        else:
            self.required = required

    def accept(self, value):
        """
        Coerce a value and check that it is valid for this setting.

        :param value: (mixed) value to check
        :return: (mixed) the coerced value
        """
        coerced_value = self.coerce(value)
        if self.max_value is not None and coerced_value >= self.max_value:
            raise ValueError(f'{coerced_value} is above max_value({self.max_value})!')
        if self.valid_values is not None:
            if isinstance(self.valid_values, re.Pattern):
                if self.valid_values.match(coerced_value) is None:
                    raise ValueError(f'{coerced_value} is not valid!'
                                     f' Valid values need to match: {self.valid_values.pattern}')
            elif coerced_value not in self.valid_values:
                raise ValueError(f'{coerced_value} is not valid!'
                                 f' Valid values are: {self.valid_values}')
        return coerced_value

    def coerce(self, value):
        """
        Coerce a value into the correct type.

        :param value: (mixed) value to coerce
        :return: (mixed) coerced value
        """
        if isinstance(value, self.type):
            return value
        # errors of nested groups are raised as they are
        if isinstance(value, dict):
            return self.type(**value)
        try:
            return self.type(value)
        except ValueError:
            raise TypeError from None


class ListSetting(Setting):
    """A Setting with a list of values."""

    def accept(self, values):
        """
        Coerce and check every element of the list.

        A single value is accepted as a list with one element.
        :param values: (list) values to check
        :return: (list) coerced values
        """
        if not isinstance(values, list):
            values = [values]
        return [super(ListSetting, self).accept(value) for value in values]


class ConfigMeta(type):
    """Metaclass used to define configuration groups."""

    def __new__(cls, name, bases, attributes):
        """Create a new instance."""
        settings = {k: a for k, a in attributes.items() if isinstance(a, Setting)}
        others = {k: a for k, a in attributes.items() if k not in settings}
        defaults = {k: s.default for k, s in settings.items() if hasattr(s, 'default')}
        required = set([k for k, s in settings.items() if s.required])
        new_attributes = dict(_settings=settings, _defaults=defaults, _required=required,
                              **others)
        return type.__new__(cls, name, bases, new_attributes)


class ConfigGroup(metaclass=ConfigMeta):
    """Base class for configuration groups."""

    def __init__(self, **kwargs):
        """Initialise the ConfigGroup."""
        self._values = {}
        for key, value in kwargs.items():
            if key not in self._settings:
                raise KeyError("Unknown setting '%s'" % key)
            setattr(self, key, value)

        # transfer defaults to those values that are not set explicitly
        for k, v in self._defaults.items():
            if k not in kwargs.keys():
                setattr(self, k, copy.deepcopy(v))

        for setting in self._required:
            if setting not in kwargs.keys():
                raise AttributeError("'%s' is required but not defined" % setting) from None

    def __setattr__(self, key, value):
        """Set the value of a Setting."""
        if key.startswith('_') or key not in self._settings:
            super(ConfigGroup, self).__setattr__(key, value)
            return
        setting = self._settings[key]
        try:
            self._values[key] = setting.accept(value)
        except TypeError:
            raise TypeError("Value '%s' is not valid for '%s' and could not be coerced "
                            "into the expected type (%s)" % (repr(value), key,
                                                             repr(setting.type))) from None
        except ValueError:
            raise ValueError("Value '%s' is not valid for '%s'" % (repr(value), key)) from None

    def __contains__(self, key):
        """Check if a Setting is configured in the ConfigGroup."""
        return key in self._settings

    def __getattr__(self, key):
        """Get the value for a Setting."""
        if key.startswith('_') or key not in self._settings:
            raise AttributeError(key)
        elif key in self._values:
            return self._values[key]
        else:
            raise AttributeError(key)

    def __eq__(self, other):
        """Check if two ConfigGroups are equal."""
        if type(other) is type(self):
            return vars(self) == vars(other)
        return False

    @classmethod
    def from_json(cls, json_string):
        """Create a ConfigGroup from a JSON string."""
        args = json.loads(json_string)
        return cls(**args)

    def to_dict(self, excl_defaults=True):
        """
        Convert the ConfigGroup to a dictionary.

        :param excl_defaults: (bool) exclude default values
        :return: (dict) dictionary representation of the ConfigGroup or None if nothing is left
        """
        values = {}
        for k, value in self._values.items():
            if isinstance(value, ConfigGroup):
                value = value.to_dict(excl_defaults=excl_defaults)
            elif isinstance(value, list):
                value = [v.to_dict(excl_defaults=excl_defaults) if isinstance(v, ConfigGroup)
                         else v for v in value]

            if value is None:
                continue
            # only keep if not default value (if set)
            if not excl_defaults or k not in self._defaults or self._defaults[k] != value:
                values[k] = value

        if len(values) == 0:
            return None
        return values

    def to_json(self, excl_defaults=True):
        """Convert the ConfigGroup to a JSON string."""
        return json.dumps(self.to_dict(excl_defaults=excl_defaults))

    def write(self, file_name, excl_defaults=True):
        """Write the ConfigGroup to a JSON file."""
        with open(file_name, "w") as outfile:
            json.dump(self.to_dict(excl_defaults=excl_defaults), outfile, indent='\t')

    def write_yaml(self, file_name, excl_defaults=True):
        """Write the ConfigGroup to a YAML file."""
        with open(file_name, "w") as outfile:
            yaml.dump(self.to_dict(excl_defaults=excl_defaults), outfile)


class ToleranceContainer():
    """Mixin class for ConfigGroups that contain tolerance strings (e.g. '10 ppm')."""

    _re_ms_tol = re.compile(r'^[\-\+]?[0-9]+(?:.[0-9]+)?\s*(?:ppm|th|da)$', re.IGNORECASE)

    def parse_ms_tol(self, str_tol):
        """Parse a tolerance string into a float value and unit string."""
        re_ms_tol = re.compile(r"(-?[0-9.]+)\s*(da|th|ppm)", re.IGNORECASE)
        tol, unit = re_ms_tol.search(str_tol).groups()
        return float(tol), unit

    def translate_ms_tol(self, str_tol):
        """
        Translate a tolerance string into a numeric tolerance and unit flag.

        :return: (float, bool) tolerance value and whether it is given in ppm
        """
        tol, unit = self.parse_ms_tol(str_tol)

        if unit.lower() == 'da' or unit.lower() == 'th':
            is_ppm = False
        elif unit.lower() == 'ppm':
            is_ppm = True
        else:
            raise ValueError('MS tolerance must be given in ppm, da, or th.')

        if tol < 0:
            raise ValueError("MS tolerance must be set to a positive value!")
        return tol, is_ppm


class DeisotoperConfig(ConfigGroup):
    """
    Settings of the isotope pattern deconvolution.

    Defaults follow the common use for high resolution MS2 spectra.
    """

    def __init__(self, **kwargs):
        """
        Initialise the DeisotoperConfig.

        Forwards all kwargs to super().__init__ and checks the isotope and charge ranges.
        """
        super().__init__(**kwargs)
        self.validate()

    def validate(self):
        """
        Check the settings for consistency.

        Settings can be reassigned after construction, so the deisotoper calls this again
        before processing a spectrum.
        :raises ValueError: on an invalid isotope peak or charge range
        """
        if self.min_isotopic_peaks < 2 or self.max_isotopic_peaks < 2 \
                or self.min_isotopic_peaks > self.max_isotopic_peaks:
            raise ValueError("Minimum/maximum number of isotopic peaks must be at least 2 "
                             "(and min_isotopic_peaks <= max_isotopic_peaks).")
        if self.min_charge < 1 or self.min_charge > self.max_charge:
            raise ValueError("Charges must be positive (and min_charge <= max_charge).")
        if self.fragment_tolerance < 0:
            raise ValueError("Fragment tolerance must be set to a positive value!")

    """Tolerance for matching isotope peaks."""
    fragment_tolerance = Setting(float, 10.0)

    """Is fragment_tolerance given in ppm (True) or Dalton (False)."""
    fragment_unit_is_ppm = Setting(bool, True)

    """Lowest charge state to test."""
    min_charge = Setting(int, 1)

    """Highest charge state to test (charges are tested from high to low)."""
    max_charge = Setting(int, 3)

    """Only keep peaks that got a charge assigned (plus seed and low m/z peaks)."""
    keep_only_deisotoped = Setting(bool, False)

    """Minimum number of peaks (incl. the monoisotopic one) of an isotope series."""
    min_isotopic_peaks = Setting(int, 3)

    """Maximum number of peaks (incl. the monoisotopic one) of an isotope series."""
    max_isotopic_peaks = Setting(int, 10)

    """Convert monoisotopic peaks to the m/z of their singly charged state."""
    make_single_charged = Setting(bool, True)

    """Write the assigned charge of every peak as 'charge' integer array."""
    annotate_charge = Setting(bool, False)

    """Write the number of isotope peaks of every series as 'iso_peak_count' integer array."""
    annotate_iso_peak_count = Setting(bool, False)

    """Require decreasing intensities along an isotope series."""
    use_decreasing_model = Setting(bool, True)

    """
    Isotope peak at which the decreasing intensity check starts.
    0 or 1 compare the monoisotopic peak with the first isotope peak, 2 compares the first with
    the second isotope peak, etc.
    """
    start_intensity_check_index = Setting(int, 2)

    """Sum up the intensities of an isotope series into the monoisotopic peak."""
    add_up_intensity = Setting(bool, False)

    """
    Apply the check for too weak first isotope peaks not only when extending seed peaks but also
    in the pass over all peaks.
    """
    noise_ratio_check_all_passes = Setting(bool, False)


class DenoiseConfig(ConfigGroup):
    """Denoise Filter configuration."""

    """ Top N (intensity) peaks to return per window """
    top_n = Setting(int)

    """ Width of the jumping window in m/z """
    window_size = Setting(float)


class FileToleranceConfig(ConfigGroup, ToleranceContainer):
    """Fragment tolerance to use for the spectra of a specific peak list file."""

    def __init__(self, **kwargs):
        """
        Initialise the FileToleranceConfig.

        Forwards all kwargs to super().__init__ and translates the tolerance string.
        """
        super().__init__(**kwargs)
        self.tolerance, self.is_ppm = self.translate_ms_tol(self.fragment_tol)

    file = Setting(str)
    fragment_tol = Setting(str, valid_values=ToleranceContainer._re_ms_tol)


class Config(ConfigGroup):
    """Top level configuration."""

    """
    Max number of processes to use for deisotoping peak lists. Setting to 0 means using the
    multiprocessing default, which is the value of `cpu_count`. Setting it to a negative
    number N means use all but minus N processes.
    """
    threads = Setting(int, 0)

    """Deisotoping settings"""
    deisotoping = Setting(DeisotoperConfig, DeisotoperConfig())

    """Denoise settings for the DenoiseFilter"""
    denoise = Setting(DenoiseConfig, DenoiseConfig(top_n=10, window_size=100))

    """File specific fragment tolerances"""
    file_tolerances = ListSetting(FileToleranceConfig, [])

    """Regular expression used for matching the scan number"""
    re_scan_number = Setting(str, "(?:scan=|[^.]*\\.)([0-9]+)(?:\\.\1)?")

    """Regular expression used for matching the run name"""
    re_run_name = Setting(str, "^([^\\s.]+)")


class ConfigReader:
    """Config Reader class."""

    @classmethod
    def load_file(cls, file_name):
        """Open a file by filename and create a Config from it."""
        with open(file_name) as f:
            if file_name.lower().endswith('.json'):
                return cls.load_json(f)
            elif file_name.lower().endswith('.yaml') or file_name.lower().endswith('.yml'):
                return cls.load_yaml(f)
            else:
                # guess the format - yaml is a superset of json
                return cls.load_yaml(f)

    @classmethod
    def load_json(cls, file_obj):
        """Create a Config from a JSON file."""
        return Config(**json.load(file_obj))

    @classmethod
    def load_yaml(cls, file_obj):
        """Create a Config from a YAML file."""
        return Config(**yaml.safe_load(file_obj))

    @classmethod
    def loads_json(cls, s):
        """Create a Config from a JSON string."""
        return Config(**json.loads(s))

    @classmethod
    def loads_yaml(cls, s):
        """Create a Config from a YAML string."""
        return Config(**yaml.safe_load(s))
