"""
Inbound body parsing.

The inbound body is always application/x-www-form-urlencoded, whatever the
upstream needs. Bracketed keys (image[]=a&image[]=b, groups[0]=5) and
repeated keys collapse to lists.
"""

import json
import logging
import re
from typing import Any
from urllib.parse import parse_qsl

from species_proxy.core.exceptions import InvalidInputError
from species_proxy.schemas.request import CONTROL_FIELDS, ClassificationRequest
from species_proxy.utils.flags import parse_flag


logger = logging.getLogger(__name__)

_BRACKET_KEY = re.compile(r'^([^\[\]]+)\[([^\[\]]*)\]$')


def parse_form_body(body: bytes | str) -> dict[str, str | list[str]]:
    """
    Decode a url-encoded body into a flat field mapping.

    Args:
        body: Raw request body

    Returns:
        Mapping of field name to a string, or a list of strings for
        bracketed or repeated keys

    Raises:
        InvalidInputError: If the body or a percent-escape is not valid UTF-8
    """
    try:
        if isinstance(body, bytes):
            body = body.decode('utf-8')
        pairs = parse_qsl(body, keep_blank_values=True, encoding='utf-8', errors='strict')
    except UnicodeDecodeError as e:
        raise InvalidInputError(f'The POST body is not valid UTF-8: {e}') from e

    fields: dict[str, str | list[str]] = {}
    for key, value in pairs:
        match = _BRACKET_KEY.match(key)
        if match:
            name = match.group(1)
            current = fields.get(name)
            if current is None:
                fields[name] = [value]
            elif isinstance(current, list):
                current.append(value)
            else:
                fields[name] = [current, value]
        elif key in fields:
            current = fields[key]
            if isinstance(current, list):
                current.append(value)
            else:
                fields[key] = [current, value]
        else:
            fields[key] = value
    return fields


def _decode_json(name: str, value: Any) -> Any:
    if isinstance(value, list):
        value = value[-1]
    try:
        return json.loads(value)
    except (TypeError, ValueError) as e:
        raise InvalidInputError(f'The {name} parameter must be valid JSON: {e}') from e


def _parse_int(name: str, value: Any) -> int:
    if isinstance(value, list):
        value = value[-1]
    try:
        return int(str(value).strip())
    except ValueError as e:
        raise InvalidInputError(f'The {name} parameter must be an integer, got {value!r}') from e


def _parse_groups(value: Any) -> frozenset[int]:
    if isinstance(value, list):
        items = value
    else:
        text = str(value).strip()
        if text.startswith('['):
            items = _decode_json('groups', text)
            if not isinstance(items, list):
                raise InvalidInputError('The groups parameter must be a list of IDs')
        else:
            items = [part for part in text.split(',') if part.strip()]
    return frozenset(_parse_int('groups', item) for item in items if str(item).strip())


def _parse_params(value: Any) -> dict[str, Any]:
    params = _decode_json('params', value)
    if not isinstance(params, dict):
        raise InvalidInputError('The params parameter must be a JSON object')
    for section in ('form', 'query'):
        if section in params and params[section] is not None and not isinstance(
            params[section], dict
        ):
            raise InvalidInputError(f'params.{section} must be a JSON object')
    return params


def parse_classification_request(fields: dict[str, Any]) -> ClassificationRequest:
    """
    Extract the proxy control fields and images from a parsed body.

    Control fields are removed, everything else apart from `image` is kept
    for forwarding to the classifier.

    Args:
        fields: Mapping produced by parse_form_body

    Returns:
        ClassificationRequest for this call

    Raises:
        InvalidInputError: If `image` is missing or a control field is malformed
    """
    fields = dict(fields)

    images = fields.pop('image', None)
    if images is None:
        raise InvalidInputError(
            'The POST body must contain an image parameter holding the location '
            'of the image to classify.'
        )
    if not isinstance(images, list):
        images = [images]
    images = [image.strip() for image in images if image and image.strip()]
    if not images:
        raise InvalidInputError('The image parameter is empty.')

    control = {name: fields.pop(name) for name in CONTROL_FIELDS if name in fields}

    taxon_list_id = None
    if control.get('list') not in (None, ''):
        # 0 is the form's "no list" value.
        taxon_list_id = _parse_int('list', control['list']) or None

    groups = frozenset()
    if control.get('groups') not in (None, ''):
        groups = _parse_groups(control['groups'])

    rules = []
    if control.get('org_group_rules_list') not in (None, ''):
        rules = _decode_json('org_group_rules_list', control['org_group_rules_list'])

    sref = None
    if control.get('sref') not in (None, ''):
        sref = _decode_json('sref', control['sref'])

    date = control.get('date')
    if isinstance(date, list):
        date = date[-1]
    date = date or None

    params = None
    if control.get('params') not in (None, ''):
        params = _parse_params(control['params'])

    # An explicit raw field beats one nested in params.
    raw = control.get('raw')
    if raw is None and params is not None:
        raw = params.get('raw')

    request = ClassificationRequest(
        image_locators=tuple(images),
        taxon_list_id=taxon_list_id,
        taxon_group_ids=groups,
        org_group_rules=rules,
        observation_sref=sref,
        observation_date=date,
        raw_passthrough=None if raw is None else parse_flag(raw),
        extra_params=params,
        forward_fields=fields,
    )
    logger.debug(
        f'Parsed request: {len(images)} image(s), list={taxon_list_id}, '
        f'groups={sorted(groups)}, forwarded={list(fields)}'
    )
    return request
