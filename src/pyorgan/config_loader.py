"""
Parameter file loader for PyOrgan.
Provides unified reading and writing of organ parameter files.

Supports:
- YAML (.yaml, .yml) - default format, bundled parameter files
- TOML (.toml) - structured configuration with types
- JSON (.json) - machine generated parameter files
- XML (.xml) - the <plant><organ><parameter/></organ></plant> layout of
  existing plant parameter databases

YAML, TOML and JSON documents share one layout:

    organ_type: stem
    parameters:
      - subtype: 1
        name: main_stem
        basal_zone: {mean: 3.0, sd: 0.3}
        spacing_shape: uniform
        successors:
          - {type: 2, probability: 1.0}

All fields are encoded and decoded through pyorgan.fields.FIELD_DESCRIPTORS,
so every field of a parameter set round-trips exactly.
"""
import json
import sys
import xml.etree.ElementTree as ET
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Union, TYPE_CHECKING

import tomli_w
import yaml

from .exceptions import (
    ConfigurationError,
    InvalidDataError,
    ParameterFileNotFoundError,
)
from .fields import (
    FIELD_DESCRIPTORS,
    FIELDS_BY_XML_NAME,
    parameter_set_from_dict,
    parameter_set_to_dict,
)
from .logging_config import get_logger
from .parameters import OrganParameterSet

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib

if TYPE_CHECKING:
    from .organism import Organism

__all__ = [
    'DEFAULT_PARAMETER_FILE',
    'SUPPORTED_FORMATS',
    'ParameterFileLoader',
    'get_parameter_loader',
    'load_parameter_sets',
    'save_parameter_sets',
]

logger = get_logger(__name__)

DEFAULT_PARAMETER_FILE = 'stem_parameters.yaml'
SUPPORTED_FORMATS = ('.yaml', '.yml', '.toml', '.json', '.xml')

_XML_DEV_NAMES = {d.xml_dev_name: d for d in FIELD_DESCRIPTORS if d.xml_dev_name}
_XML_ORGAN_ATTRIBUTES = {'type': 'organ_type', 'subType': 'subtype', 'name': 'name'}


class ParameterFileLoader:
    """Loads and saves organ parameter files.

    Raw documents are cached per resolved path; parameter sets are built
    fresh on every ``load`` so that each caller gets its own capabilities
    and organism binding.

    Attributes:
        cfg_dir: Directory searched for relative file names that do not exist
            relative to the working directory
    """

    def __init__(self, cfg_dir: Path = None):
        """Initialize the parameter file loader.

        Args:
            cfg_dir: Directory of bundled parameter files. Defaults to the
                cfg/ directory inside the package.
        """
        if cfg_dir is None:
            cfg_dir = Path(__file__).parent / 'cfg'
        self.cfg_dir = Path(cfg_dir)
        self._document_cache: Dict[str, Dict[str, Any]] = {}

    def resolve(self, file_path: Union[str, Path, None] = None) -> Path:
        """Resolve a parameter file name.

        Args:
            file_path: Path of the file; None selects the bundled default file

        Returns:
            Existing path, or the path as given if nothing exists
        """
        if file_path is None:
            return self.cfg_dir / DEFAULT_PARAMETER_FILE
        path = Path(file_path)
        if not path.exists() and not path.is_absolute() and (self.cfg_dir / path).exists():
            return self.cfg_dir / path
        return path

    def _load_config_file(self, file_path: Path) -> Dict[str, Any]:
        """Load a parameter document from YAML, TOML, JSON or XML.

        Args:
            file_path: Path to the parameter file

        Returns:
            Dictionary in the common document layout

        Raises:
            ParameterFileNotFoundError: If file doesn't exist
            ConfigurationError: If file format is not supported or reading fails
            InvalidDataError: If the file cannot be parsed
        """
        if not file_path.exists():
            raise ParameterFileNotFoundError(str(file_path))

        suffix = file_path.suffix.lower()

        try:
            if suffix in ['.yaml', '.yml']:
                with open(file_path, 'r', encoding='utf-8') as f:
                    data = yaml.safe_load(f)
                    if data is None:
                        raise InvalidDataError("YAML file", "file is empty or contains only comments")
                    return data
            elif suffix == '.toml':
                with open(file_path, 'rb') as f:
                    return tomllib.load(f)
            elif suffix == '.json':
                with open(file_path, 'r', encoding='utf-8') as f:
                    data = json.load(f)
                    if data is None:
                        raise InvalidDataError("JSON file", "file is empty or contains null")
                    return data
            elif suffix == '.xml':
                return _xml_to_document(ET.parse(file_path).getroot())
            else:
                raise ConfigurationError(f"Unsupported parameter file format: {suffix}. "
                                         f"Supported formats: {', '.join(SUPPORTED_FORMATS)}")
        except yaml.YAMLError as e:
            raise InvalidDataError("YAML parameter file", f"parsing error: {str(e)}") from e
        except json.JSONDecodeError as e:
            raise InvalidDataError("JSON parameter file", f"parsing error: {str(e)}") from e
        except tomllib.TOMLDecodeError as e:
            raise InvalidDataError("TOML parameter file", f"parsing error: {str(e)}") from e
        except ET.ParseError as e:
            raise InvalidDataError("XML parameter file", f"parsing error: {str(e)}") from e
        except OSError as e:
            raise ConfigurationError(f"Failed to read parameter file {file_path}: {str(e)}") from e

    def _save_config_file(self, data: Dict[str, Any], file_path: Path) -> None:
        """Save a parameter document to YAML, TOML, JSON or XML.

        Args:
            data: Document in the common layout
            file_path: Path where to save the file

        Raises:
            ConfigurationError: If file format is not supported
        """
        suffix = file_path.suffix.lower()
        if suffix not in SUPPORTED_FORMATS:
            raise ConfigurationError(f"Unsupported parameter file format: {suffix}")

        # Create parent directory if it doesn't exist
        file_path.parent.mkdir(parents=True, exist_ok=True)

        if suffix in ['.yaml', '.yml']:
            with open(file_path, 'w', encoding='utf-8') as f:
                yaml.safe_dump(data, f, default_flow_style=False, sort_keys=False)
        elif suffix == '.toml':
            with open(file_path, 'wb') as f:
                tomli_w.dump(data, f)
        elif suffix == '.json':
            with open(file_path, 'w', encoding='utf-8') as f:
                json.dump(data, f, indent=2)
        else:
            tree = ET.ElementTree(_document_to_xml(data))
            ET.indent(tree)
            tree.write(file_path, encoding='utf-8', xml_declaration=True)

    def load_document(self, file_path: Union[str, Path, None] = None) -> Dict[str, Any]:
        """Load the raw document of a parameter file with caching."""
        path = self.resolve(file_path)
        cache_key = str(path.resolve())
        if cache_key not in self._document_cache:
            self._document_cache[cache_key] = self._load_config_file(path)
            logger.debug("Loaded parameter file %s", path)
        return self._document_cache[cache_key]

    def load(
        self,
        file_path: Union[str, Path, None] = None,
        organism: Optional['Organism'] = None,
        **capabilities,
    ) -> List[OrganParameterSet]:
        """Load all parameter sets of a parameter file.

        Args:
            file_path: Parameter file; None selects the bundled default
            organism: Optional organism the parameter sets are added to
            **capabilities: Shared capabilities passed to every parameter set
                (tropism, growth_function, environment_scale)

        Returns:
            Parameter sets in file order

        Raises:
            SuccessorMismatchError: If a parameter set has inconsistent successors
            InvalidDataError: If the document layout is invalid
        """
        document = self.load_document(file_path)
        parameter_sets = _document_to_parameter_sets(document, **capabilities)
        if organism is not None:
            parameter_sets = [organism.add_parameter_set(p) for p in parameter_sets]
        logger.info("Loaded %d parameter set(s) from %s", len(parameter_sets),
                    self.resolve(file_path))
        return parameter_sets

    def save(self, parameter_sets: Iterable[OrganParameterSet],
             file_path: Union[str, Path]) -> Path:
        """Save parameter sets; the format follows the file suffix.

        Returns:
            The path written
        """
        path = Path(file_path)
        parameter_sets = list(parameter_sets)
        document = {
            'organ_type': parameter_sets[0].organ_type if parameter_sets else 'stem',
            'parameters': [parameter_set_to_dict(p) for p in parameter_sets],
        }
        self._save_config_file(document, path)
        self._document_cache.pop(str(path.resolve()), None)
        logger.info("Saved %d parameter set(s) to %s", len(parameter_sets), path)
        return path

    def clear_cache(self) -> None:
        """Clear the document cache.

        Useful for testing or when parameter files may have changed.
        """
        self._document_cache.clear()


def _document_to_parameter_sets(document: Dict[str, Any], **extra) -> List[OrganParameterSet]:
    if not isinstance(document, dict):
        raise InvalidDataError("parameter document", "top level must be a mapping")
    entries = document.get('parameters', [])
    if not isinstance(entries, list):
        raise InvalidDataError("parameter document", "'parameters' must be a list")
    default_organ_type = document.get('organ_type', 'stem')
    parameter_sets = []
    for entry in entries:
        if not isinstance(entry, dict):
            raise InvalidDataError("parameter document", f"entry {entry!r} is not a mapping")
        data = {'organ_type': default_organ_type}
        data.update(entry)
        parameter_sets.append(parameter_set_from_dict(data, **extra))
    return parameter_sets


def _xml_to_document(root: ET.Element) -> Dict[str, Any]:
    organs = [root] if root.tag == 'organ' else list(root.iter('organ'))
    entries = []
    for organ in organs:
        entry: Dict[str, Any] = {}
        for attribute, key in _XML_ORGAN_ATTRIBUTES.items():
            if attribute in organ.attrib:
                entry[key] = organ.attrib[attribute]
        successors = []
        for element in organ.iter('parameter'):
            name = element.get('name')
            value = element.get('value')
            if name == 'successor':
                successors.append({
                    'type': element.get('type'),
                    'probability': element.get('percentage'),
                })
            elif name in FIELDS_BY_XML_NAME:
                descriptor = FIELDS_BY_XML_NAME[name]
                if descriptor.kind == 'trait':
                    trait = entry.setdefault(descriptor.name, {'mean': 0.0, 'sd': 0.0})
                    trait['mean'] = value
                    if element.get('dev') is not None:
                        trait['sd'] = element.get('dev')
                else:
                    entry[descriptor.name] = value
            elif name in _XML_DEV_NAMES:
                descriptor = _XML_DEV_NAMES[name]
                trait = entry.setdefault(descriptor.name, {'mean': 0.0, 'sd': 0.0})
                trait['sd'] = value
            else:
                logger.warning("Ignoring unknown XML parameter '%s'", name)
        entry['successors'] = successors
        entries.append(entry)
    return {'parameters': entries}


def _xml_value(value: Any) -> str:
    if isinstance(value, float):
        return repr(value)
    return str(value)


def _document_to_xml(document: Dict[str, Any]) -> ET.Element:
    root = ET.Element('plant')
    for entry in document.get('parameters', []):
        organ = ET.SubElement(root, 'organ')
        for attribute, key in _XML_ORGAN_ATTRIBUTES.items():
            if key in entry:
                organ.set(attribute, _xml_value(entry[key]))
        for descriptor in FIELD_DESCRIPTORS:
            if descriptor.name in _XML_ORGAN_ATTRIBUTES.values() or descriptor.name not in entry:
                continue
            value = entry[descriptor.name]
            if descriptor.kind == 'successors':
                for number, successor in enumerate(value):
                    ET.SubElement(organ, 'parameter', {
                        'name': descriptor.xml_name,
                        'number': str(number),
                        'type': _xml_value(successor['type']),
                        'percentage': _xml_value(successor['probability']),
                    })
            elif descriptor.kind == 'trait':
                ET.SubElement(organ, 'parameter', {
                    'name': descriptor.xml_name,
                    'value': _xml_value(value['mean']),
                    'dev': _xml_value(value['sd']),
                })
            else:
                ET.SubElement(organ, 'parameter', {
                    'name': descriptor.xml_name,
                    'value': _xml_value(value),
                })
    return root


# Global loader instance
_parameter_loader: Optional[ParameterFileLoader] = None


def get_parameter_loader() -> ParameterFileLoader:
    """Get the shared parameter file loader instance."""
    global _parameter_loader
    if _parameter_loader is None:
        _parameter_loader = ParameterFileLoader()
    return _parameter_loader


def load_parameter_sets(file_path: Union[str, Path, None] = None,
                        organism: Optional['Organism'] = None,
                        **capabilities) -> List[OrganParameterSet]:
    """Convenience function to load parameter sets with the shared loader.

    Args:
        file_path: Parameter file; None selects the bundled default
        organism: Optional organism the parameter sets are added to
        **capabilities: Shared capabilities passed to every parameter set
    """
    return get_parameter_loader().load(file_path, organism=organism, **capabilities)


def save_parameter_sets(parameter_sets: Iterable[OrganParameterSet],
                        file_path: Union[str, Path]) -> Path:
    """Convenience function to save parameter sets with the shared loader."""
    return get_parameter_loader().save(parameter_sets, file_path)
