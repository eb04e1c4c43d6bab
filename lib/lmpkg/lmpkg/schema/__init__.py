# Copyright 2013-2024 Lawrence Livermore National Security, LLC and other
# Spack Project Developers. See the top-level COPYRIGHT file for details.
#
# SPDX-License-Identifier: (Apache-2.0 OR MIT)
"""This module contains jsonschema files for all of lmpkg's YAML formats."""
import copy
import functools

from lmpkg.error import SpecSyntaxError


# jsonschema is imported lazily as it is heavy to import
# and increases the start-up time
@functools.lru_cache(maxsize=None)
def _make_validator():
    import jsonschema

    def _validate_spec(validator, is_spec, instance, schema):
        """Check that string values are valid specs."""
        import jsonschema

        import lmpkg.spec

        if not is_spec or not validator.is_type(instance, "string"):
            return

        try:
            lmpkg.spec.parse(instance)
        except SpecSyntaxError as e:
            yield jsonschema.ValidationError(str(e))

    return jsonschema.validators.extend(
        jsonschema.Draft4Validator, {"validate_spec": _validate_spec}
    )


def Validator(schema):
    """Return a validator for ``schema`` that also understands ``validate_spec``."""
    return _make_validator()(schema)


def merge_yaml(dest, source):
    """Merges source into dest; entries in source take precedence over dest.

    This routine may modify dest and should be assigned to dest, in
    case dest was None to begin with, e.g.:

       dest = merge_yaml(dest, source)

    In the result, elements from lists from ``source`` will appear before
    elements of lists from ``dest``. Likewise, when iterating over keys
    or items in merged dictionaries, keys from ``source`` will
    appear before keys from ``dest``.
    """

    def they_are(t):
        return isinstance(dest, t) and isinstance(source, t)

    # If source is None, overwrite with source.
    if source is None:
        return None

    # Source list is prepended (for precedence)
    if they_are(list):
        dest[:] = source + [x for x in dest if x not in source]
        return dest

    # Source dict is merged into dest.
    elif they_are(dict):
        # save dest keys to reinsert later -- this ensures that source items
        # come *before* dest in the result
        dest_keys = [dk for dk in dest.keys() if dk not in source]

        for sk, sv in source.items():
            merge = sk in dest
            old_dest_value = dest.pop(sk, None)

            if merge:
                dest[sk] = merge_yaml(old_dest_value, sv)
            else:
                dest[sk] = copy.deepcopy(sv)

        # reinsert dest keys so they are last in the result
        for dk in dest_keys:
            dest[dk] = dest.pop(dk)

        return dest

    # If we reach here source and dest are either different types or are
    # not both lists or dicts: replace with source.
    return copy.copy(source)
