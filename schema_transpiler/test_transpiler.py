#!/usr/bin/env python3
"""
Unit tests for the transpilation engine: scanning primitives, declaration
extraction, shape classification and the recursive type mapping.

Run with: python3 -m pytest schema_transpiler/test_transpiler.py
"""

import unittest

from schema_transpiler import TranspilerConfig, convert, get_converter
from schema_transpiler.codegen import (
    DiagnosticKind,
    EmissionContext,
    TranspilerDiagnostics,
    TypeConverter,
    TypeScriptRenderer,
)
from schema_transpiler.lexer import (
    NOT_FOUND,
    OPENERS,
    collapse_deep_groups,
    find_matching_closer,
    skip_string_literal,
    split_at_depth_zero,
    split_first_at_depth_zero,
    strip_comments,
)
from schema_transpiler.parser import (
    ArrayOf,
    Container,
    DeclarationKind,
    EnumOf,
    GraphQLExtractor,
    InlineObject,
    Nullable,
    OptionalOf,
    PrismaExtractor,
    Primitive,
    Reference,
    SqlExtractor,
    TypeScriptExtractor,
    UnionOf,
    Unknown,
    ZodExtractor,
)
from schema_transpiler.type_system import DeclarationRegistry


def warning_codes(result):
    return [w.code for w in result.warnings]


class TestScanningPrimitives(unittest.TestCase):
    """Test the delimiter-aware scanning primitives."""

    def test_skip_string_literal_honors_escaped_quote(self):
        self.assertEqual(skip_string_literal('"a\\"b" rest', 0), 5)

    def test_skip_string_literal_unterminated_runs_to_end(self):
        self.assertEqual(skip_string_literal('"abc', 0), 3)

    def test_find_matching_closer_nested(self):
        self.assertEqual(find_matching_closer('{a: {b: 1}}', 0), 10)

    def test_find_matching_closer_skips_arrow(self):
        """A '>' preceded by '=' is an arrow, not a generic closer."""
        self.assertEqual(find_matching_closer('Array<(x) => y>', 5), 14)

    def test_find_matching_closer_ignores_string_contents(self):
        self.assertEqual(find_matching_closer('{ "}" }', 0), 6)
        self.assertEqual(find_matching_closer('{ "}" ', 0), NOT_FOUND)

    def test_split_at_depth_zero(self):
        parts = split_at_depth_zero('a, Map<string, number>, "x,y"', ',')
        self.assertEqual(parts, ['a', 'Map<string, number>', '"x,y"'])

    def test_split_drops_empty_trailing_parts(self):
        self.assertEqual(split_at_depth_zero('a;b;', ';'), ['a', 'b'])

    def test_split_first_at_depth_zero(self):
        self.assertEqual(split_first_at_depth_zero('m: Map<K, V>'), ('m', 'Map<K, V>'))
        self.assertEqual(split_first_at_depth_zero('no colon'), ('no colon', None))

    def test_strip_comments_keeps_strings(self):
        self.assertEqual(strip_comments('a // c\nb /* x */ "//s"'), 'a \nb   "//s"')

    def test_collapse_deep_groups(self):
        text, collapsed = collapse_deep_groups('{"a": {"b": {"c": [1]}}, "d": "{{{"}', 2, '{}')
        self.assertEqual(text, '{"a": {"b": {}}, "d": "{{{"}')
        self.assertEqual(collapsed, 1)
        self.assertEqual(collapse_deep_groups('[1, [2]]', 5, '[]'), ('[1, [2]]', 0))

    def test_every_opener_closes_after_itself(self):
        """On well-formed input every opener has a closer further right."""
        text = 'interface A { m: Map<string, Array<{ x: [number, string] }>>; f: (a) => void }'
        for index, ch in enumerate(text):
            if ch in OPENERS:
                self.assertGreater(find_matching_closer(text, index), index, f'opener at {index}')


class TestTypeScriptExtraction(unittest.TestCase):
    """Test TypeScript declaration extraction and classification."""

    def setUp(self):
        self.diagnostics = TranspilerDiagnostics()
        self.grammar = TypeScriptExtractor(self.diagnostics)

    def test_interface_fields_in_source_order(self):
        declarations = self.grammar.extract('''
            export interface User extends Base {
              id: number;
              "display-name"?: string;
              tags: string[]
            }
        ''')
        self.assertEqual(len(declarations), 1)
        user = declarations[0]
        self.assertEqual(user.kind, DeclarationKind.OBJECT_LIKE)
        self.assertEqual(user.bases, ('Base',))
        self.assertEqual([f.key for f in user.fields], ['id', 'display-name', 'tags'])
        self.assertEqual([f.optional for f in user.fields], [False, True, False])

    def test_alias_without_semicolon_ends_at_next_declaration(self):
        declarations = self.grammar.extract('type A = string | number\ntype B = A[]\n')
        self.assertEqual([d.name for d in declarations], ['A', 'B'])
        self.assertEqual(declarations[0].alias_body, 'string | number')

    def test_object_alias_is_object_like(self):
        declarations = self.grammar.extract('type Point = { x: number; y: number };')
        self.assertEqual(declarations[0].kind, DeclarationKind.OBJECT_LIKE)
        self.assertEqual(len(declarations[0].fields), 2)

    def test_unbalanced_declaration_is_skipped(self):
        declarations = self.grammar.extract('interface A { name: string;\ninterface B { x: number }')
        self.assertEqual([d.name for d in declarations], ['B'])
        self.assertEqual(self.diagnostics.warnings[0].kind, DiagnosticKind.UNBALANCED_DELIMITER)

    def test_extracted_bodies_do_not_overlap(self):
        source = 'interface A { b: { c: string } }\ninterface B { a: A }\nenum C { X, Y }'
        declarations = self.grammar.extract(source)
        self.assertEqual([d.name for d in declarations], ['A', 'B', 'C'])

    def test_string_literal_union_is_enum(self):
        self.assertEqual(self.grammar.classify("'a' | 'b' | 'c'"), EnumOf(('a', 'b', 'c')))

    def test_null_union_is_nullable(self):
        self.assertEqual(self.grammar.classify('string | null'), Nullable('string'))

    def test_grouped_union_array_is_array(self):
        self.assertEqual(self.grammar.classify('(string | number)[]'), ArrayOf('(string | number)'))

    def test_pick_keeps_selected_keys(self):
        shape = self.grammar.classify("Pick<User, 'id' | 'name'>")
        self.assertEqual(shape, Container('pick', ('User',), ('id', 'name')))

    def test_unrecognized_expression_is_unknown(self):
        self.assertIsInstance(self.grammar.classify('typeof foo'), Unknown)


class TestOtherGrammars(unittest.TestCase):
    """Test classification rules of the non-TypeScript grammars."""

    def test_graphql_nullability(self):
        grammar = GraphQLExtractor(TranspilerDiagnostics())
        self.assertEqual(grammar.classify('String'), OptionalOf('String!'))
        self.assertEqual(grammar.classify('String!'), Primitive('string'))
        self.assertEqual(grammar.classify('[Post!]!'), ArrayOf('Post!'))
        self.assertEqual(grammar.classify('Post!'), Reference('Post'))

    def test_graphql_field_arguments(self):
        grammar = GraphQLExtractor(TranspilerDiagnostics())
        declarations = grammar.extract('type Query {\n  user(id: ID!, limit: Int = 10): User\n}')
        field = declarations[0].fields[0]
        self.assertEqual(field.key, 'user')
        self.assertEqual([a.key for a in field.arguments], ['id', 'limit'])
        self.assertEqual(field.arguments[1].attributes['default'], 10)

    def test_sql_column_types(self):
        grammar = SqlExtractor(TranspilerDiagnostics())
        self.assertEqual(grammar.classify('VARCHAR(255)'), Primitive('string', (('max_length', 255),)))
        self.assertEqual(grammar.classify('tinyint(1)'), Primitive('boolean'))
        self.assertEqual(grammar.classify("ENUM('a','b')"), EnumOf(('a', 'b')))
        self.assertEqual(grammar.classify('integer[]'), ArrayOf('integer'))
        self.assertEqual(
            grammar.classify('DECIMAL(10,2)'),
            Primitive('decimal', (('description', 'DECIMAL(10,2)'),)),
        )

    def test_sql_table_constraints(self):
        grammar = SqlExtractor(TranspilerDiagnostics())
        declarations = grammar.extract('''
            CREATE TABLE IF NOT EXISTS public.memberships (
              user_id INT NOT NULL,
              group_id INT NOT NULL,
              role VARCHAR(20) DEFAULT 'member',
              PRIMARY KEY (user_id, group_id)
            );
        ''')
        table = declarations[0]
        self.assertEqual(table.name, 'Memberships')
        self.assertEqual(table.attributes['table'], 'memberships')
        self.assertEqual(table.attributes['primary_key'], ('user_id', 'group_id'))
        role = table.fields[2]
        self.assertTrue(role.optional)
        self.assertEqual(role.attributes['default'], 'member')

    def test_prisma_field_types(self):
        grammar = PrismaExtractor(TranspilerDiagnostics())
        self.assertEqual(grammar.classify('String? @db.VarChar(40)'), Nullable('String @db.VarChar(40)'))
        self.assertEqual(grammar.classify('String @db.VarChar(40)'), Primitive('string', (('max_length', 40),)))
        self.assertEqual(grammar.classify('Int[]'), ArrayOf('Int'))
        self.assertEqual(grammar.classify('DateTime'), Primitive('datetime'))
        self.assertEqual(grammar.classify('Role'), Reference('Role'))

    def test_prisma_field_attributes(self):
        grammar = PrismaExtractor(TranspilerDiagnostics())
        field = grammar.parse_field('id String @id @default(uuid()) @db.Uuid')
        self.assertEqual(field.raw_type, 'String @db.Uuid')
        self.assertEqual(field.attributes, {'primary_key': True, 'generated': True})
        field = grammar.parse_field('nick String @default("anon user") @unique')
        self.assertEqual(field.attributes, {'default': 'anon user', 'unique': True})
        self.assertFalse(field.optional)
        self.assertIsNone(grammar.parse_field('@@index([nick])'))

    def test_zod_chains(self):
        grammar = ZodExtractor(TranspilerDiagnostics())
        self.assertEqual(
            grammar.classify('z.string().email().max(50)'),
            Primitive('string', (('format', 'email'), ('max_length', 50))),
        )
        self.assertEqual(grammar.classify('z.number().int().optional()'), OptionalOf('z.number().int()'))
        self.assertEqual(grammar.classify('UserSchema'), Reference('User'))
        self.assertEqual(grammar.classify('z.array(z.string())'), ArrayOf('z.string()'))
        self.assertEqual(grammar.classify('z.string().or(z.number())'), UnionOf(('z.string()', 'z.number()')))
        self.assertIsInstance(grammar.classify('z.object({ a: z.string() }).strict()'), InlineObject)

    def test_zod_trailing_calls_and_lazy(self):
        grammar = ZodExtractor(TranspilerDiagnostics())
        self.assertEqual(grammar.classify('z.lazy(() => z.lazy(() => z.string()))'), Primitive('string'))
        self.assertEqual(grammar.classify('UserSchema.describe("x")'), Reference('User'))
        self.assertEqual(grammar.classify('z.string().optional().describe("x")'), OptionalOf('z.string()'))
        chain = 'z.number()' + '.describe("n")' * 2000
        self.assertEqual(grammar.classify(chain), Primitive('number'))

    def test_zod_field_modifiers_anywhere_in_chain(self):
        grammar = ZodExtractor(TranspilerDiagnostics())
        declaration = grammar.extract(
            'const S = z.object({ bio: z.string().optional().describe(`About me`), '
            'tags: z.string().optional().array(), n: z.number().default(3) });'
        )[0]
        bio, tags, n = declaration.fields
        self.assertTrue(bio.optional)
        self.assertEqual(bio.description, 'About me')
        self.assertFalse(tags.optional)
        self.assertFalse(n.optional)
        self.assertEqual(n.attributes, {'default': 3})

    def test_zod_router_procedures(self):
        grammar = ZodExtractor(TranspilerDiagnostics())
        declarations = grammar.extract('''
            export const appRouter = router({
              list: publicProcedure.query(() => []),
              add: publicProcedure.input(z.object({ title: z.string() })).mutation(() => null),
            });
        ''')
        self.assertEqual([d.name for d in declarations], ['list', 'add'])
        self.assertEqual(declarations[0].attributes, {'procedure': 'query', 'has_input': False})
        self.assertEqual(declarations[1].attributes['procedure'], 'mutation')
        self.assertEqual(declarations[1].alias_body, 'z.object({ title: z.string() })')


class TestDeclarationRegistry(unittest.TestCase):
    """Test reference bookkeeping and dependency ordering."""

    def _registry(self, source):
        return DeclarationRegistry(TypeScriptExtractor(TranspilerDiagnostics()).extract(source))

    def test_duplicates_keep_first(self):
        registry = self._registry('type A = string;\ntype A = number;')
        self.assertEqual(len(registry), 1)
        self.assertEqual(registry.get('A').alias_body, 'string')
        self.assertEqual(len(registry.duplicates), 1)

    def test_dependency_order_puts_referenced_first(self):
        registry = self._registry('type A = B;\ntype B = C;\ntype C = string;')
        ordered = registry.dependency_order({'A': ['B'], 'B': ['C'], 'C': []})
        self.assertEqual([d.name for d, _ in ordered], ['C', 'B', 'A'])

    def test_dependency_order_reports_cycle_as_pending(self):
        registry = self._registry('type A = B;\ntype B = A;')
        ordered = registry.dependency_order({'A': ['B'], 'B': ['A']})
        self.assertEqual([d.name for d, _ in ordered], ['B', 'A'])
        self.assertIn('A', ordered[0][1])


class TestTypeConverter(unittest.TestCase):
    """Test the recursive mapper directly with the TypeScript renderer."""

    def _converter(self, source, max_depth=20):
        diagnostics = TranspilerDiagnostics()
        grammar = TypeScriptExtractor(diagnostics)
        registry = DeclarationRegistry(grammar.extract(source))
        ctx = EmissionContext()
        converter = TypeConverter(ctx, grammar, TypeScriptRenderer(ctx), registry, diagnostics, max_depth)
        return converter, registry, diagnostics

    def test_map_type_primitives_and_unions(self):
        converter, registry, _ = self._converter('type X = string;')
        self.assertEqual(converter.map_type('number | string', registry.names), 'number | string')
        self.assertEqual(converter.map_type('Array<string | number>', registry.names), '(string | number)[]')

    def test_intersection_folds_left(self):
        converter, registry, _ = self._converter('type X = string;')
        self.assertEqual(converter.map_type('A & B & C', frozenset('ABC')), 'A & B & C')

    def test_unknown_reference_degrades(self):
        converter, registry, diagnostics = self._converter('type X = string;')
        self.assertEqual(converter.map_type('Missing', registry.names), 'unknown')
        self.assertEqual(diagnostics.warnings[0].code, 'W003')

    def test_depth_guard(self):
        converter, registry, diagnostics = self._converter('type X = string;', max_depth=3)
        nested = 'Array<' * 10 + 'string' + '>' * 10
        self.assertIn('unknown', converter.map_type(nested, registry.names))
        self.assertEqual([w.code for w in diagnostics.warnings], ['W002'])

    def test_ancestors_are_not_shared_between_siblings(self):
        converter, registry, _ = self._converter('interface A { v: string }')
        result = converter.map_type('{ x: A; y: A }', registry.names, frozenset())
        self.assertNotIn('lazy', result)
        self.assertEqual(result.count('A'), 2)


class TestScenarios(unittest.TestCase):
    """End-to-end behavior every converter must honor."""

    def test_required_and_optional_field(self):
        result = convert('ts-to-zod', 'interface User {\n  name: string;\n  age?: number;\n}')
        self.assertIsNone(result.diagnostic)
        self.assertEqual(
            result.output_text,
            'import { z } from "zod";\n'
            '\n'
            'export const UserSchema = z.object({\n'
            '  name: z.string(),\n'
            '  age: z.number().optional(),\n'
            '});\n'
            'export type User = z.infer<typeof UserSchema>;\n',
        )

    def test_closed_enumeration(self):
        result = convert('ts-to-zod', "type Status = 'active' | 'inactive' | 'banned';")
        self.assertIn('z.enum(["active", "inactive", "banned"])', result.output_text)

    def test_undeclared_reference(self):
        result = convert('ts-to-zod', 'interface User {\n  name: string;\n  address: Address;\n}')
        self.assertTrue(result.ok)
        self.assertIn('address: z.unknown(),', result.output_text)
        self.assertIn('name: z.string(),', result.output_text)
        self.assertEqual(warning_codes(result), ['W003'])

    def test_empty_document(self):
        result = convert('ts-to-zod', '')
        self.assertEqual(result.output_text, '')
        self.assertEqual(result.diagnostic.kind, DiagnosticKind.SYNTAX_UNRECOGNIZED)
        self.assertEqual(result.diagnostic.code, 'E001')

    def test_mutual_references(self):
        result = convert('ts-to-zod', 'interface A { b: B }\ninterface B { a: A }')
        self.assertTrue(result.ok)
        self.assertIn('export const ASchema', result.output_text)
        self.assertIn('export const BSchema', result.output_text)
        self.assertIn('z.lazy(() => ASchema)', result.output_text)
        self.assertLess(result.output_text.index('BSchema ='), result.output_text.index('ASchema ='))

    def test_self_reference(self):
        result = convert('ts-to-zod', 'interface Node { children: Node[] }')
        self.assertIn('children: z.array(z.lazy(() => NodeSchema)),', result.output_text)

    def test_deterministic(self):
        source = 'interface A { b: B; m: Record<string, A> }\ninterface B { a?: A | null; t: [string, number] }'
        self.assertEqual(convert('ts-to-zod', source), convert('ts-to-zod', source))
        self.assertEqual(convert('ts-to-json-schema', source), convert('ts-to-json-schema', source))

    def test_depth_exceeded_terminates(self):
        source = 'type Deep = ' + '{ a: ' * 40 + 'string' + ' }' * 40 + ';'
        result = convert('ts-to-zod', source)
        self.assertTrue(result.ok)
        self.assertIn('W002', warning_codes(result))
        self.assertIn('z.unknown()', result.output_text)

    def test_union_inside_array_is_grouped(self):
        result = convert('ts-to-zod', 'interface A { values: (string | number)[] }')
        self.assertIn('values: z.array(z.union([z.string(), z.number()])),', result.output_text)

    def test_size_limit(self):
        converter = get_converter('ts-to-zod', TranspilerConfig(max_input_length=10))
        result = converter.convert('interface User { name: string }')
        self.assertEqual(result.diagnostic.code, 'E002')
        self.assertEqual(result.output_text, '')

    def test_unsafe_integer_literal(self):
        result = convert('ts-to-zod', 'type Big = 9007199254740993;')
        self.assertIn('z.literal(9007199254740993n)', result.output_text)
        self.assertEqual(warning_codes(result), ['W004'])


if __name__ == '__main__':
    unittest.main(verbosity=2)
