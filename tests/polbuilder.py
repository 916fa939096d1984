"""
Builders for synthetic registry.pol buffers and PolicyDefinitions stores
"""

import struct
from pathlib import Path

REG_SZ = 1
REG_DWORD = 4
REG_BINARY = 3


def utf16z(text):
    return (text + "\x00").encode("utf-16-le")


def sep():
    return ";".encode("utf-16-le")


def record(key, value_name, value_type, data):
    if value_type == REG_SZ and isinstance(data, str):
        payload = utf16z(data)
    elif value_type == REG_DWORD and isinstance(data, int):
        payload = struct.pack("<I", data)
    else:
        payload = bytes(data)
    return (
        "[".encode("utf-16-le")
        + utf16z(key) + sep()
        + utf16z(value_name) + sep()
        + struct.pack("<I", value_type) + sep()
        + struct.pack("<I", len(payload)) + sep()
        + payload
        + "]".encode("utf-16-le")
    )


def pol_buffer(*records):
    return b"PReg" + struct.pack("<I", 1) + b"".join(records)


def write_pol(gpo_dir, scope_dir, *records, name="Registry.pol"):
    target = Path(gpo_dir) / scope_dir
    target.mkdir(parents=True, exist_ok=True)
    path = target / name
    path.write_bytes(pol_buffer(*records))
    return path


ADMX_TEMPLATE = """<?xml version="1.0" encoding="utf-8"?>
<policyDefinitions xmlns:xsd="http://www.w3.org/2001/XMLSchema"
                   xmlns="http://schemas.microsoft.com/GroupPolicy/2006/07/PolicyDefinitions"
                   revision="1.0" schemaVersion="1.0">
  <policyNamespaces>
    <target prefix="{prefix}" namespace="Test.Policies.{prefix}" />
  </policyNamespaces>
  <resources minRequiredRevision="1.0" />
  <policies>
{policies}
  </policies>
</policyDefinitions>
"""

POLICY_TEMPLATE = """    <policy name="{name}" class="{cls}" displayName="$(string.{display})"
            explainText="$(string.{display}_Help)" key="{key}" valueName="{value_name}">
      <parentCategory ref="windows:WindowsComponents" />
      <enabledValue><decimal value="1" /></enabledValue>
      <disabledValue><decimal value="0" /></disabledValue>
    </policy>"""

ADML_TEMPLATE = """<?xml version="1.0" encoding="utf-8"?>
<policyDefinitionResources xmlns="http://schemas.microsoft.com/GroupPolicy/2006/07/PolicyDefinitions"
                           revision="1.0" schemaVersion="1.0">
  <displayName />
  <description />
  <resources>
    <stringTable>
{strings}
    </stringTable>
  </resources>
</policyDefinitionResources>
"""


def policy_xml(name, key, value_name, display=None, cls="Machine"):
    return POLICY_TEMPLATE.format(name=name, cls=cls, display=display or name,
                                  key=key, value_name=value_name)


def write_admx(root, file_name, *policies, prefix="test"):
    path = Path(root) / file_name
    path.write_text(ADMX_TEMPLATE.format(prefix=prefix, policies="\n".join(policies)),
                    encoding="utf-8")
    return path


def write_adml(root, language, file_name, strings):
    locale_dir = Path(root) / language
    locale_dir.mkdir(parents=True, exist_ok=True)
    lines = "\n".join(f'      <string id="{sid}">{text}</string>' for sid, text in strings.items())
    path = locale_dir / file_name
    path.write_text(ADML_TEMPLATE.format(strings=lines), encoding="utf-8")
    return path
