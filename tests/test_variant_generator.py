"""
Tests for Variant Generation

Tests for:
- Cartesian completeness and row-major creation order
- Idempotence and delta-only creation
- Set-equality deduplication
- Empty and invalid selections
- Transactional atomicity
- Concurrent writers on the same product
"""

from unittest import mock

import pytest
from django.db import DatabaseError

from apps.catalog.combinations import Selection, signature_of
from apps.catalog.exceptions import (
    EmptySelection,
    GenerationFailed,
    InvalidSelection,
    Unauthorized,
)
from apps.catalog.models import Variant, VariantAttributeValue
from apps.catalog.services import VariantGenerationService
from apps.catalog.services import variant_generator

pytestmark = pytest.mark.django_db


def generate(capability, product, selection):
    return VariantGenerationService.generate(capability, product, selection)


def value_sets(product):
    return {
        frozenset(v.get_attribute_value_ids())
        for v in Variant.objects.filter(product=product)
    }


@pytest.fixture
def two_by_three(catalog):
    """[[A1, A2], [B1, B2, B3]] as raw ids."""
    c = catalog
    return [[c.a1.pk, c.a2.pk], [c.b1.pk, c.b2.pk, c.b3.pk]]


class TestCartesianCompleteness:

    def test_creates_one_variant_per_combination(self, capability, product, catalog, two_by_three):
        created = generate(capability, product, two_by_three)

        assert created == 6
        assert Variant.objects.filter(product=product).count() == 6
        assert value_sets(product) == {
            frozenset({a, b})
            for a in two_by_three[0]
            for b in two_by_three[1]
        }

    def test_each_variant_has_exactly_its_values(self, capability, product, catalog, two_by_three):
        generate(capability, product, two_by_three)

        for variant in Variant.objects.filter(product=product):
            assert variant.value_links.count() == 2

    def test_new_variants_use_defaults(self, capability, product, catalog, two_by_three):
        generate(capability, product, two_by_three)

        for variant in Variant.objects.filter(product=product):
            assert variant.status == Variant.STATUS_DRAFT
            assert variant.stock == 0
            assert variant.regular_price is None
            assert variant.sale_price is None
            assert variant.sku is None

    def test_stored_signature_matches_join_rows(self, capability, product, catalog, two_by_three):
        generate(capability, product, two_by_three)

        for variant in Variant.objects.filter(product=product):
            assert variant.signature == signature_of(variant.get_attribute_value_ids())

    def test_creation_order_is_row_major(self, capability, product, catalog, two_by_three):
        generate(capability, product, two_by_three)

        created = [
            v.get_attribute_value_ids()
            for v in Variant.objects.filter(product=product).order_by('id')
        ]
        assert created == [
            sorted([a, b]) for a in two_by_three[0] for b in two_by_three[1]
        ]

    def test_single_attribute_selection(self, capability, product, catalog):
        created = generate(capability, product, [[catalog.a1.pk, catalog.a2.pk]])

        assert created == 2
        assert value_sets(product) == {
            frozenset({catalog.a1.pk}), frozenset({catalog.a2.pk})
        }

    def test_three_attributes(self, capability, product, catalog, two_by_three):
        created = generate(capability, product, two_by_three + [[catalog.c1.pk]])

        assert created == 6
        for variant in Variant.objects.filter(product=product):
            assert variant.value_links.count() == 3

    def test_attributes_without_values_do_not_participate(self, capability, product, catalog):
        created = generate(capability, product, [[], [catalog.b1.pk, catalog.b2.pk], []])

        assert created == 2

    def test_accepts_typed_selection(self, capability, product, catalog):
        selection = Selection({
            catalog.color.pk: [catalog.a1.pk],
            catalog.size.pk: [catalog.b1.pk, catalog.b2.pk],
        })

        assert generate(capability, product, selection) == 2

    def test_accepts_mapping_selection(self, capability, product, catalog):
        selection = {
            str(catalog.color.pk): [catalog.a1.pk, catalog.a2.pk],
            str(catalog.size.pk): [catalog.b3.pk],
        }

        assert generate(capability, product, selection) == 2


class TestIdempotence:

    def test_second_identical_call_creates_nothing(self, capability, product, catalog, two_by_three):
        assert generate(capability, product, two_by_three) == 6
        assert generate(capability, product, two_by_three) == 0
        assert Variant.objects.filter(product=product).count() == 6

    def test_superset_creates_only_the_delta(self, capability, product, catalog, two_by_three):
        first = generate(capability, product, [[catalog.a1.pk], [catalog.b1.pk, catalog.b2.pk]])
        second = generate(capability, product, two_by_three)

        assert first == 2
        assert second == 4
        assert Variant.objects.filter(product=product).count() == 6

    def test_existing_variants_of_other_products_are_ignored(
        self, capability, product, other_product, catalog, two_by_three, make_variant
    ):
        make_variant(other_product, [catalog.a1, catalog.b1])

        assert generate(capability, product, two_by_three) == 6


class TestDeltaOnlyCreation:

    def test_pre_existing_combination_is_skipped(
        self, capability, product, catalog, two_by_three, make_variant
    ):
        existing = make_variant(product, [catalog.a1, catalog.b1], sku='TEE-BLK-S', stock=4)

        created = generate(capability, product, two_by_three)

        assert created == 5
        assert Variant.objects.filter(product=product).count() == 6

        existing.refresh_from_db()
        assert existing.get_attribute_value_ids() == sorted([catalog.a1.pk, catalog.b1.pk])
        assert existing.sku == 'TEE-BLK-S'
        assert existing.stock == 4

    def test_set_equality_not_sequence_equality(
        self, capability, product, catalog, two_by_three, make_variant
    ):
        # Join rows attached as (B1, A1)
        make_variant(product, [catalog.b1, catalog.a1])

        assert variant_generator.existing_signatures(product) == {
            signature_of([catalog.a1.pk, catalog.b1.pk])
        }
        assert generate(capability, product, two_by_three) == 5
        assert Variant.objects.filter(product=product).count() == 6


class TestSelectionRejection:

    @pytest.mark.parametrize('selection', [[], [[]], [[], []]])
    def test_empty_selection_rejected_without_storage_access(
        self, capability, product, selection, django_assert_num_queries
    ):
        with django_assert_num_queries(0):
            with pytest.raises(EmptySelection):
                generate(capability, product, selection)

        assert Variant.objects.filter(product=product).count() == 0

    def test_empty_mapping_rejected(self, capability, product):
        with pytest.raises(EmptySelection):
            generate(capability, product, {'1': [], '2': []})

    def test_unknown_value_id(self, capability, product, catalog):
        with pytest.raises(InvalidSelection):
            generate(capability, product, [[catalog.a1.pk, 999999]])

        assert Variant.objects.count() == 0

    def test_group_mixing_attributes(self, capability, product, catalog):
        with pytest.raises(InvalidSelection):
            generate(capability, product, [[catalog.a1.pk, catalog.b1.pk]])

    def test_attribute_selected_twice(self, capability, product, catalog):
        with pytest.raises(InvalidSelection):
            generate(capability, product, [[catalog.a1.pk], [catalog.a2.pk]])

    def test_mapping_key_must_own_its_values(self, capability, product, catalog):
        with pytest.raises(InvalidSelection):
            generate(capability, product, {catalog.size.pk: [catalog.a1.pk]})

    def test_typed_selection_is_checked_against_catalog(self, capability, product, catalog):
        selection = Selection({catalog.color.pk: [catalog.a1.pk], catalog.size.pk: [catalog.a2.pk]})

        with pytest.raises(InvalidSelection):
            generate(capability, product, selection)

        assert Variant.objects.filter(product=product).count() == 0

    def test_non_list_entry(self, capability, product, catalog):
        with pytest.raises(InvalidSelection):
            generate(capability, product, [str(catalog.a1.pk)])

    def test_requires_admin_capability(self, product, catalog, two_by_three):
        with pytest.raises(Unauthorized):
            generate(None, product, two_by_three)

        assert Variant.objects.count() == 0


class TestTransactionalAtomicity:

    def test_join_row_failure_rolls_back_whole_batch(
        self, capability, product, catalog, two_by_three, make_variant
    ):
        make_variant(product, [catalog.a1, catalog.b1])
        before = Variant.objects.filter(product=product).count()
        links_before = VariantAttributeValue.objects.count()

        real_attach = variant_generator._attach_values
        calls = {'count': 0}

        def failing_attach(variant, value_ids):
            calls['count'] += 1
            if calls['count'] == 3:
                raise DatabaseError('join row write failed')
            real_attach(variant, value_ids)

        with mock.patch.object(variant_generator, '_attach_values', side_effect=failing_attach):
            with pytest.raises(GenerationFailed) as excinfo:
                generate(capability, product, two_by_three)

        assert isinstance(excinfo.value.__cause__, DatabaseError)
        assert calls['count'] == 3
        assert Variant.objects.filter(product=product).count() == before
        assert VariantAttributeValue.objects.count() == links_before

    def test_snapshot_read_failure_is_generation_failed(self, capability, product, catalog, two_by_three):
        with mock.patch.object(
            variant_generator, 'existing_signatures', side_effect=DatabaseError('read failed')
        ):
            with pytest.raises(GenerationFailed):
                generate(capability, product, two_by_three)

        assert Variant.objects.count() == 0


class TestConcurrentWriters:

    def test_duplicate_rejected_by_unique_constraint_is_skipped(
        self, capability, product, catalog, two_by_three, make_variant
    ):
        # Another request committed (A1, B1) after this one took its snapshot
        make_variant(product, [catalog.a1, catalog.b1])

        with mock.patch.object(variant_generator, 'existing_signatures', return_value=set()):
            created = generate(capability, product, two_by_three)

        assert created == 5
        assert Variant.objects.filter(product=product).count() == 6

    def test_interleaved_calls_create_each_combination_once(self, capability, product, catalog):
        c = catalog
        selection_a = [[c.a1.pk, c.a2.pk], [c.b1.pk, c.b2.pk]]
        selection_b = [[c.a2.pk], [c.b1.pk, c.b2.pk, c.b3.pk]]
        results = {}

        real_snapshot = variant_generator.existing_signatures

        def racing_snapshot(target):
            snapshot = real_snapshot(target)
            # Call B runs to completion between A's read and A's inserts
            with mock.patch.object(variant_generator, 'existing_signatures', real_snapshot):
                results['b'] = generate(capability, target, selection_b)
            return snapshot

        with mock.patch.object(variant_generator, 'existing_signatures', side_effect=racing_snapshot):
            results['a'] = generate(capability, product, selection_a)

        signatures = list(
            Variant.objects.filter(product=product).values_list('signature', flat=True)
        )
        distinct_new = {
            signature_of(combo)
            for combo in [
                (a, b) for a in selection_a[0] for b in selection_a[1]
            ] + [
                (a, b) for a in selection_b[0] for b in selection_b[1]
            ]
        }

        assert results['b'] == 3
        assert results['a'] == 2
        assert results['a'] + results['b'] == len(distinct_new) == 5
        assert len(signatures) == len(set(signatures)) == 5
        assert set(signatures) == distinct_new

    def test_sequential_overlapping_calls_sum_to_distinct_combinations(
        self, capability, product, catalog
    ):
        c = catalog
        first = generate(capability, product, [[c.a1.pk, c.a2.pk], [c.b1.pk, c.b2.pk]])
        second = generate(capability, product, [[c.a2.pk], [c.b1.pk, c.b2.pk, c.b3.pk]])

        assert first + second == 5
        assert Variant.objects.filter(product=product).count() == 5
