"""
Unit tests for inbound body parsing
"""

import pytest

from species_proxy.core.exceptions import InvalidInputError
from species_proxy.services.request_parser import parse_classification_request, parse_form_body


class TestParseFormBody:
    """Test cases for parse_form_body"""

    def test_plain_fields(self):
        assert parse_form_body('image=cat.jpg&list=3') == {'image': 'cat.jpg', 'list': '3'}

    def test_bracket_keys_collapse_to_lists(self):
        fields = parse_form_body('image%5B%5D=a.jpg&image%5B%5D=b.jpg&groups[0]=5&groups[1]=7')

        assert fields['image'] == ['a.jpg', 'b.jpg']
        assert fields['groups'] == ['5', '7']

    def test_single_bracket_key_is_still_a_list(self):
        assert parse_form_body('image[]=a.jpg') == {'image': ['a.jpg']}

    def test_repeated_keys_collapse_to_lists(self):
        assert parse_form_body('organs=leaf&organs=flower&organs=fruit') == {
            'organs': ['leaf', 'flower', 'fruit']
        }

    def test_bytes_and_blank_values(self):
        assert parse_form_body(b'image=cat.jpg&date=') == {'image': 'cat.jpg', 'date': ''}

    def test_url_decoding(self):
        fields = parse_form_body('image=https%3A%2F%2Fexample.org%2Fcat.jpg')
        assert fields['image'] == 'https://example.org/cat.jpg'

    @pytest.mark.parametrize('body', [b'image=\xff\xfecat.jpg', 'image=%FF%FEcat.jpg'])
    def test_invalid_utf8_is_rejected(self, body):
        with pytest.raises(InvalidInputError) as exc_info:
            parse_form_body(body)
        assert exc_info.value.status_code == 400


class TestParseClassificationRequest:
    """Test cases for parse_classification_request"""

    def test_missing_image(self):
        with pytest.raises(InvalidInputError) as exc_info:
            parse_classification_request({'list': '3'})
        assert 'image' in exc_info.value.message
        assert exc_info.value.status_code == 400

    def test_empty_image(self):
        with pytest.raises(InvalidInputError):
            parse_classification_request({'image': ''})
        with pytest.raises(InvalidInputError):
            parse_classification_request({'image': ['', ' ']})

    def test_minimal_request(self):
        request = parse_classification_request({'image': 'cat.jpg'})

        assert request.image_locators == ('cat.jpg',)
        assert request.taxon_list_id is None
        assert request.taxon_group_ids == frozenset()
        assert request.org_group_rules == []
        assert request.observation_sref is None
        assert request.observation_date is None
        assert request.raw_passthrough is None
        assert request.extra_params is None
        assert request.forward_fields == {}
        assert request.can_verify is False

    def test_multiple_images_keep_order(self):
        request = parse_classification_request({'image': ['b.jpg', 'a.jpg']})
        assert request.image_locators == ('b.jpg', 'a.jpg')

    def test_control_fields(self):
        request = parse_classification_request(
            {
                'image': 'cat.jpg',
                'list': '3',
                'groups': '[5, 7]',
                'org_group_rules_list': '[{"organisation": "BRC", "group": "Moths"}]',
                'sref': '{"srid": 4326, "latitude": 51.5, "longitude": -1.2}',
                'date': '2024-06-01',
            }
        )

        assert request.taxon_list_id == 3
        assert request.taxon_group_ids == frozenset({5, 7})
        assert request.org_group_rules == [{'organisation': 'BRC', 'group': 'Moths'}]
        assert request.observation_sref == {'srid': 4326, 'latitude': 51.5, 'longitude': -1.2}
        assert request.observation_date == '2024-06-01'
        assert request.can_verify is True
        assert request.forward_fields == {}

    @pytest.mark.parametrize(
        'groups',
        ['5,7', ['5', '7'], '[5, 7]', ' 5 , 7 ,'],
    )
    def test_group_formats(self, groups):
        request = parse_classification_request({'image': 'cat.jpg', 'groups': groups})
        assert request.taxon_group_ids == frozenset({5, 7})

    def test_zero_list_means_no_list(self):
        request = parse_classification_request({'image': 'cat.jpg', 'list': '0'})
        assert request.taxon_list_id is None

    def test_invalid_list(self):
        with pytest.raises(InvalidInputError):
            parse_classification_request({'image': 'cat.jpg', 'list': 'birds'})

    def test_invalid_groups(self):
        with pytest.raises(InvalidInputError):
            parse_classification_request({'image': 'cat.jpg', 'groups': '{"a": 1}'})

    def test_invalid_sref_json(self):
        with pytest.raises(InvalidInputError) as exc_info:
            parse_classification_request({'image': 'cat.jpg', 'sref': 'SU1234'})
        assert 'sref' in exc_info.value.message

    def test_empty_date_is_none(self):
        request = parse_classification_request({'image': 'cat.jpg', 'date': ''})
        assert request.observation_date is None

    def test_params(self):
        request = parse_classification_request(
            {
                'image': 'cat.jpg',
                'params': '{"form": {"organs": ["leaf"]}, "query": {"lang": "en"}}',
            }
        )

        assert request.extra_params == {'form': {'organs': ['leaf']}, 'query': {'lang': 'en'}}
        assert request.form_params == {'organs': ['leaf']}
        assert request.query_params == {'lang': 'en'}

    @pytest.mark.parametrize('params', ['[1, 2]', '{"form": "organs=leaf"}', '{"query": [1]}', '{'])
    def test_invalid_params(self, params):
        with pytest.raises(InvalidInputError):
            parse_classification_request({'image': 'cat.jpg', 'params': params})

    def test_raw_field(self):
        assert parse_classification_request({'image': 'a', 'raw': 'yes'}).raw_passthrough is True
        assert parse_classification_request({'image': 'a', 'raw': '0'}).raw_passthrough is False

    def test_raw_in_params(self):
        request = parse_classification_request({'image': 'a', 'params': '{"raw": true}'})
        assert request.raw_passthrough is True

    def test_explicit_raw_beats_params(self):
        request = parse_classification_request(
            {'image': 'a', 'raw': 'false', 'params': '{"raw": true}'}
        )
        assert request.raw_passthrough is False

    def test_leftover_fields_are_forwarded(self):
        request = parse_classification_request(
            {'image': 'cat.jpg', 'list': '3', 'organs': ['leaf', 'flower'], 'lang': 'en'}
        )

        assert request.forward_fields == {'organs': ['leaf', 'flower'], 'lang': 'en'}

    def test_input_mapping_not_mutated(self):
        fields = {'image': 'cat.jpg', 'list': '3'}
        parse_classification_request(fields)
        assert fields == {'image': 'cat.jpg', 'list': '3'}
