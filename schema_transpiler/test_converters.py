#!/usr/bin/env python3
"""
Unit tests for the registered converters, configuration and CLI.

Run with: python3 -m pytest schema_transpiler/test_converters.py
"""

import io
import json
import os
import tempfile
import unittest
from dataclasses import replace
from unittest import mock

from schema_transpiler import (
    Converter,
    TranspilerConfig,
    available_converters,
    convert,
    get_converter,
)
from schema_transpiler.codegen import TranspilerDiagnostics, ZodEmitter, ZodRenderer
from schema_transpiler.parser import TypeScriptExtractor
from schema_transpiler.transpile import main


USERS_TABLE = '''
-- application users
CREATE TABLE users (
  id SERIAL PRIMARY KEY,
  email VARCHAR(255) NOT NULL UNIQUE,
  display_name TEXT,
  created_at TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP
);
'''

TRPC_ROUTER = '''
import { z } from 'zod';
import { router, publicProcedure } from './trpc';

const CreateUserSchema = z.object({
  name: z.string().min(1),
  email: z.string().email(),
  age: z.number().int().optional(),
  bio: z.string().max(500).optional().describe("A short biography"),
});

export const appRouter = router({
  getUserById: publicProcedure
    .input(z.object({ id: z.string() }))
    .query(({ input }) => null),
  createUser: publicProcedure
    .input(CreateUserSchema)
    .mutation(({ input }) => null),
  health: publicProcedure.query(() => 'ok'),
});
'''

PETSTORE_YAML = '''
openapi: 3.0.0
info:
  title: Pets
  version: 1.0.0
components:
  schemas:
    Pet:
      type: object
      required: [id, name]
      properties:
        id:
          type: integer
          format: int64
        name:
          type: string
          maxLength: 50
        status:
          type: string
          enum: [available, sold]
        owner:
          $ref: '#/components/schemas/Owner'
    Owner:
      type: object
      properties:
        email:
          type: string
          format: email
        pets:
          type: array
          items:
            $ref: '#/components/schemas/Pet'
'''

GRAPHQL_SCHEMA = '''
# Public API
enum Role {
  ADMIN
  USER
}

type User {
  id: ID!
  name: String
  role: Role!
  friends: [User!]!
}

type Post {
  title: String!
}

union SearchResult = User | Post

type Query {
  user(id: ID!): User
  users: [User!]!
}

type Mutation {
  createUser(name: String!): User!
}
'''


BLOG_PRISMA = '''
// Blog data model
datasource db {
  provider = "postgresql"
  url      = env("DATABASE_URL")
}

generator client {
  provider = "prisma-client-js"
}

/// Application user
model User {
  id        Int      @id @default(autoincrement())
  /// Login address
  email     String   @unique @db.VarChar(255)
  age       Int?
  role      Role     @default(USER)
  balance   Decimal
  tags      String[]
  settings  Json?
  posts     Post[]
  createdAt DateTime @default(now())
  updatedAt DateTime @updatedAt

  @@map("users")
}

model Post {
  id        String  @id @default(cuid())
  title     String
  published Boolean @default(false)
  author    User    @relation(fields: [authorId], references: [id])
  authorId  Int
}

enum Role {
  USER
  ADMIN
  MODERATOR
}
'''

PROFILE_ZOD = '''
const UserSchema = z.object({
  fullName: z.string().min(1).max(100).describe("The user's first and last name"),
  email: z.string().email().describe("A valid email address"),
  age: z.number().int().min(18).max(150).describe("Must be at least 18 years old"),
  role: z.enum(["ADMIN", "USER", "MODERATOR"]).describe("The user's access level"),
  bio: z.string().max(500).optional().describe("A short biography"),
  isActive: z.boolean().optional(),
  tags: z.array(z.string()).describe("List of interest tags"),
});
'''


def lines_with(output, needle):
    return [line for line in output.splitlines() if needle in line]


class TestConverterRegistry(unittest.TestCase):
    """Test converter lookup and dispatch."""

    def test_available_converters(self):
        self.assertEqual(available_converters(), (
            'ts-to-zod',
            'ts-to-json-schema',
            'json-schema-to-ts',
            'json-schema-to-zod',
            'openapi-to-zod',
            'graphql-to-zod',
            'graphql-to-trpc',
            'sql-to-prisma',
            'sql-to-json-schema',
            'sql-to-zod',
            'trpc-to-openapi',
            'prisma-to-zod',
            'zod-to-prompt',
        ))

    def test_unknown_converter_name(self):
        with self.assertRaises(ValueError):
            convert('cobol-to-zod', '')

    def test_per_converter_defaults(self):
        self.assertEqual(get_converter('ts-to-zod').config.max_depth, 20)
        self.assertEqual(get_converter('json-schema-to-ts').config.max_depth, 64)
        self.assertEqual(get_converter('sql-to-zod').config.max_input_length, 500_000)

    def test_shared_diagnostics_collector(self):
        diagnostics = TranspilerDiagnostics()
        self.assertEqual(diagnostics.get_summary(), 'No transpiler warnings.')
        result = get_converter('ts-to-zod').convert('interface A { b: Missing; c: Gone }', diagnostics)
        self.assertEqual(len(result.warnings), 2)
        self.assertEqual(diagnostics.count, 2)
        self.assertEqual(diagnostics.get_summary(), 'Transpiler warnings: 2 reference')
        stream = io.StringIO()
        diagnostics.print_summary(stream)
        self.assertIn('reference: 2 occurrence(s)', stream.getvalue())
        diagnostics.clear()
        self.assertEqual(diagnostics.count, 0)

    def test_unexpected_error_becomes_diagnostic(self):
        class BrokenExtractor(TypeScriptExtractor):
            def extract(self, source):
                raise RuntimeError('boom')

        converter = Converter('broken', BrokenExtractor, ZodRenderer, ZodEmitter)
        with self.assertLogs('schema_transpiler.transpile', level='ERROR'):
            result = converter.convert('interface A { x: string }')
        self.assertEqual(result.diagnostic.code, 'E099')
        self.assertIn('boom', result.diagnostic.message)
        self.assertEqual(result.output_text, '')


class TestTypeScriptConverters(unittest.TestCase):
    """Test ts-to-zod and ts-to-json-schema."""

    def test_pick_uses_schema_method(self):
        source = "interface User { id: number; name: string }\ntype Named = Pick<User, 'name'>;"
        result = convert('ts-to-zod', source)
        self.assertIn('export const NamedSchema = UserSchema.pick({ name: true });', result.output_text)

    def test_index_signature_is_catchall(self):
        result = convert('ts-to-zod', 'interface Bag { id: string; [key: string]: number }')
        self.assertIn('}).catchall(z.number());', result.output_text)

    def test_non_nullable_drops_null_members(self):
        source = 'type Name = NonNullable<string | null | undefined>;\ntype Gone = NonNullable<null>;'
        output = convert('ts-to-zod', source).output_text
        self.assertIn('export const NameSchema = z.string();', output)
        self.assertIn('export const GoneSchema = z.never();', output)
        self.assertNotIn('nullable', output)

    def test_json_schema_root_and_defs(self):
        source = 'interface User { name: string; age?: number; address: Address }\n' \
                 'interface Address { city: string }'
        document = json.loads(convert('ts-to-json-schema', source).output_text)
        self.assertEqual(document['$schema'], 'http://json-schema.org/draft-07/schema#')
        self.assertEqual(document['title'], 'User')
        self.assertEqual(document['required'], ['name', 'address'])
        self.assertEqual(document['properties']['address'], {'$ref': '#/$defs/Address'})
        self.assertEqual(document['$defs']['Address']['properties']['city'], {'type': 'string'})

    def test_json_schema_root_self_reference(self):
        document = json.loads(convert('ts-to-json-schema', 'interface Node { children: Node[] }').output_text)
        self.assertEqual(document['properties']['children'], {'type': 'array', 'items': {'$ref': '#'}})

    def test_json_schema_empty_document_placeholder(self):
        result = convert('ts-to-json-schema', '   ')
        self.assertEqual(result.output_text, '{}')
        self.assertEqual(result.diagnostic.code, 'E001')


class TestJsonSchemaConverters(unittest.TestCase):
    """Test json-schema-to-ts, json-schema-to-zod and openapi-to-zod."""

    def test_json_schema_to_ts(self):
        schema = {
            'title': 'User',
            'type': 'object',
            'properties': {
                'id': {'type': 'integer'},
                'tags': {'type': 'array', 'items': {'anyOf': [{'type': 'string'}, {'type': 'number'}]}},
            },
            'required': ['id'],
        }
        result = convert('json-schema-to-ts', json.dumps(schema))
        self.assertEqual(
            result.output_text,
            'export interface User {\n'
            '  id: number;\n'
            '  tags?: (string | number)[];\n'
            '}\n',
        )

    def test_description_becomes_doc_comment(self):
        schema = {
            'title': 'Item',
            'description': 'A catalog item',
            'type': 'object',
            'properties': {'sku': {'type': 'string', 'description': 'Stock keeping unit'}},
        }
        output = convert('json-schema-to-ts', json.dumps(schema)).output_text
        self.assertTrue(output.startswith('/** A catalog item */\nexport interface Item {'))
        self.assertIn('  /** Stock keeping unit */\n  sku?: string;', output)

    def test_invalid_json(self):
        result = convert('json-schema-to-ts', '{not json')
        self.assertEqual(result.diagnostic.code, 'E001')
        self.assertEqual(result.output_text, '')

    def test_pydantic_schema_to_zod(self):
        schema = {
            'title': 'Order',
            'type': 'object',
            'properties': {
                'id': {'type': 'integer'},
                'note': {'anyOf': [{'type': 'string'}, {'type': 'null'}], 'default': None},
                'item': {'$ref': '#/$defs/Item'},
            },
            'required': ['id', 'item'],
            '$defs': {
                'Item': {'type': 'object', 'properties': {'sku': {'type': 'string'}}, 'required': ['sku']},
            },
        }
        output = convert('json-schema-to-zod', json.dumps(schema)).output_text
        self.assertIn('note: z.string().nullable().optional().default(null),', output)
        self.assertIn('item: ItemSchema,', output)
        self.assertLess(output.index('export const ItemSchema'), output.index('export const OrderSchema'))

    def test_openapi_yaml_to_zod(self):
        result = convert('openapi-to-zod', PETSTORE_YAML)
        output = result.output_text
        self.assertTrue(result.ok)
        self.assertIn('// Generated from OpenAPI 3.0.0\n// Pets v1.0.0\n', output)
        self.assertIn('  id: z.number().int(),\n', output)
        self.assertIn('  name: z.string().max(50),\n', output)
        self.assertIn('  status: z.enum(["available", "sold"]).optional(),\n', output)
        self.assertIn('z.lazy(() => PetSchema)', output)
        self.assertIn('owner: z.object({ email: z.string().email().optional()', output)
        self.assertLess(output.index('export const OwnerSchema'), output.index('export const PetSchema'))

    def test_openapi_sibling_references_are_not_cycles(self):
        document = {
            'openapi': '3.1.0',
            'components': {'schemas': {
                'Line': {
                    'type': 'object',
                    'properties': {'start': {'$ref': '#/components/schemas/Point'},
                                   'end': {'$ref': '#/components/schemas/Point'}},
                },
                'Point': {'type': 'object', 'properties': {'x': {'type': 'number'}}},
            }},
        }
        output = convert('openapi-to-zod', json.dumps(document)).output_text
        self.assertNotIn('z.lazy', output)
        self.assertEqual(output.count('z.object({ x: z.number().optional() })'), 2)

    def test_openapi_without_schemas(self):
        result = convert('openapi-to-zod', 'openapi: 3.0.0\ninfo:\n  title: Empty\n')
        self.assertEqual(result.diagnostic.code, 'E001')

    def test_deeply_nested_json_degrades(self):
        depth = 1500
        document = '{"type": "array", "items": ' * depth + '{"type": "string"}' + '}' * depth
        with self.assertLogs('schema_transpiler', level='WARNING'):
            result = convert('json-schema-to-zod', document)
        self.assertTrue(result.ok)
        self.assertIn('W002', [w.code for w in result.warnings])
        self.assertIn('z.unknown()', result.output_text)

    def test_deeply_nested_yaml_degrades(self):
        depth = 1500
        document = (
            'openapi: 3.0.0\n'
            'components:\n'
            '  schemas:\n'
            '    Deep: ' + '{type: array, items: ' * depth + '{type: string}' + '}' * depth + '\n'
        )
        with self.assertLogs('schema_transpiler', level='WARNING'):
            result = convert('openapi-to-zod', document)
        self.assertTrue(result.ok)
        self.assertIn('W002', [w.code for w in result.warnings])
        self.assertIn('export const DeepSchema = z.array(z.array(', result.output_text)

    def test_shallow_yaml_is_not_rewritten(self):
        result = convert('openapi-to-zod', PETSTORE_YAML)
        self.assertEqual([w.code for w in result.warnings if w.code == 'W002'], [])

    def test_malformed_required_lists(self):
        schema = {
            'title': 'Legacy',
            'type': 'object',
            'required': 'name',
            'properties': {
                'name': {'type': 'string', 'required': True},
                'note': {'type': 'string'},
            },
        }
        result = convert('json-schema-to-ts', json.dumps(schema))
        self.assertTrue(result.ok)
        self.assertIn('  name: string;\n', result.output_text)
        self.assertIn('  note?: string;\n', result.output_text)


class TestGraphQLConverters(unittest.TestCase):
    """Test graphql-to-zod and graphql-to-trpc."""

    def test_graphql_to_zod(self):
        output = convert('graphql-to-zod', GRAPHQL_SCHEMA).output_text
        self.assertIn('export const RoleSchema = z.enum(["ADMIN", "USER"]);', output)
        self.assertIn('  id: z.string(),\n', output)
        self.assertIn('  name: z.string().optional(),\n', output)
        self.assertIn('  role: RoleSchema,\n', output)
        self.assertIn('  friends: z.array(z.lazy(() => UserSchema)),\n', output)
        self.assertIn('export const SearchResultSchema = z.union([UserSchema, PostSchema]);', output)
        self.assertLess(output.index('RoleSchema ='), output.index('UserSchema ='))

    def test_graphql_to_trpc(self):
        output = convert('graphql-to-trpc', GRAPHQL_SCHEMA).output_text
        self.assertTrue(output.startswith("import { z } from 'zod';\nimport { router, publicProcedure } from './trpc';"))
        self.assertIn('export const UserSchema', output)
        self.assertNotIn('QuerySchema', output)
        self.assertIn(
            '  user: publicProcedure\n'
            '    .input(z.object({ id: z.string() }))\n'
            '    .query(async ({ input }) => {\n'
            '      // TODO: Return User\n'
            '      return null as any;\n'
            '    }),',
            output,
        )
        self.assertIn('  users: publicProcedure\n    .query(', output)
        self.assertIn('.input(z.object({ name: z.string() }))\n    .mutation(', output)
        self.assertTrue(output.endswith('export type AppRouter = typeof appRouter;\n'))


class TestSqlConverters(unittest.TestCase):
    """Test sql-to-prisma, sql-to-json-schema and sql-to-zod."""

    def test_sql_to_prisma_model(self):
        output = convert('sql-to-prisma', USERS_TABLE).output_text
        self.assertIn('model User {', output)
        self.assertEqual(lines_with(output, ' id ')[0].split(), ['id', 'Int', '@id', '@default(autoincrement())'])
        self.assertEqual(lines_with(output, 'email')[0].split(), ['email', 'String', '@unique'])
        self.assertEqual(lines_with(output, 'displayName')[0].split(),
                         ['displayName', 'String?', '@map("display_name")'])
        self.assertEqual(lines_with(output, 'createdAt')[0].split(),
                         ['createdAt', 'DateTime', '@default(now())', '@map("created_at")'])
        self.assertIn('  @@map("users")\n}', output)

    def test_sql_to_prisma_enums(self):
        source = '''
            CREATE TYPE mood AS ENUM ('happy', 'sad');
            CREATE TABLE accounts (
              id INT PRIMARY KEY,
              feeling mood NOT NULL DEFAULT 'happy',
              role ENUM('admin', 'user')
            );
        '''
        output = convert('sql-to-prisma', source).output_text
        self.assertIn('enum Mood {\n  happy\n  sad\n\n  @@map("mood")\n}', output)
        self.assertIn('enum AccountRole {\n  admin\n  user\n}', output)
        self.assertEqual(lines_with(output, 'feeling')[0].split(), ['feeling', 'Mood', '@default(happy)'])
        self.assertEqual(lines_with(output, 'role')[0].split(), ['role', 'AccountRole?'])
        self.assertEqual(output.count('enum Mood'), 1)
        self.assertLess(output.index('enum AccountRole'), output.index('model Account'))

    def test_sql_to_prisma_composite_key(self):
        source = '''
            CREATE TABLE memberships (
              user_id INT NOT NULL,
              group_id INT NOT NULL,
              PRIMARY KEY (user_id, group_id)
            );
        '''
        output = convert('sql-to-prisma', source).output_text
        self.assertIn('@@id([userId, groupId])', output)
        self.assertNotIn('@id ', output)

    def test_sql_to_json_schema(self):
        source = 'CREATE TABLE products (id INT PRIMARY KEY, price DECIMAL(10,2) NOT NULL, name VARCHAR(100));'
        document = json.loads(convert('sql-to-json-schema', source).output_text)
        self.assertEqual(document['title'], 'products')
        self.assertEqual(document['required'], ['id', 'price'])
        self.assertEqual(document['properties']['id'], {'type': 'integer', 'description': 'PRIMARY KEY'})
        self.assertEqual(document['properties']['price'], {'type': 'number', 'description': 'DECIMAL(10,2)'})
        self.assertEqual(document['properties']['name'], {'type': 'string', 'maxLength': 100})

    def test_sql_to_zod(self):
        output = convert('sql-to-zod', USERS_TABLE).output_text
        self.assertIn('export const UsersSchema = z.object({', output)
        self.assertIn('  id: z.number().int(),\n', output)
        self.assertIn('  email: z.string().max(255),\n', output)
        self.assertIn('  display_name: z.string().optional(),\n', output)
        self.assertIn('  created_at: z.string().datetime(),\n', output)

    def test_no_tables(self):
        result = convert('sql-to-zod', 'SELECT 1;')
        self.assertEqual(result.diagnostic.code, 'E001')
        self.assertIn('CREATE TABLE', result.diagnostic.message)


class TestTrpcToOpenApi(unittest.TestCase):
    """Test trpc-to-openapi."""

    def setUp(self):
        result = convert('trpc-to-openapi', TRPC_ROUTER)
        self.assertTrue(result.ok)
        self.document = json.loads(result.output_text)

    def test_document_header(self):
        self.assertEqual(self.document['openapi'], '3.1.0')
        self.assertEqual(self.document['info']['title'], 'tRPC Converted API')

    def test_query_input_is_deep_object(self):
        operation = self.document['paths']['/trpc/getUserById']['get']
        self.assertEqual(operation['summary'], 'Get User By Id')
        self.assertEqual(operation['tags'], ['Queries'])
        parameter = operation['parameters'][0]
        self.assertEqual(parameter['style'], 'deepObject')
        self.assertEqual(parameter['schema'], {
            'type': 'object',
            'properties': {'id': {'type': 'string'}},
            'required': ['id'],
        })

    def test_mutation_input_is_request_body(self):
        operation = self.document['paths']['/trpc/createUser']['post']
        schema = operation['requestBody']['content']['application/json']['schema']
        self.assertEqual(schema, {'$ref': '#/components/schemas/CreateUser'})

    def test_procedure_without_input(self):
        operation = self.document['paths']['/trpc/health']['get']
        self.assertNotIn('parameters', operation)
        self.assertIn('200', operation['responses'])

    def test_component_schema(self):
        schema = self.document['components']['schemas']['CreateUser']
        self.assertEqual(schema['required'], ['name', 'email'])
        self.assertEqual(schema['properties']['name'], {'type': 'string', 'minLength': 1})
        self.assertEqual(schema['properties']['email'], {'type': 'string', 'format': 'email'})
        self.assertEqual(schema['properties']['age'], {'type': 'integer'})

    def test_optional_before_describe(self):
        schema = self.document['components']['schemas']['CreateUser']
        self.assertNotIn('bio', schema['required'])
        self.assertEqual(schema['properties']['bio'], {
            'type': 'string',
            'maxLength': 500,
            'description': 'A short biography',
        })

    def test_long_method_chain(self):
        chain = 'z.string()' + '.describe("x")' * 600
        source = ('export const appRouter = router({\n'
                  f'  ping: publicProcedure.input(z.object({{ note: {chain} }})).query(() => null),\n'
                  '});\n')
        result = convert('trpc-to-openapi', source)
        self.assertTrue(result.ok)
        parameter = json.loads(result.output_text)['paths']['/trpc/ping']['get']['parameters'][0]
        self.assertEqual(parameter['schema']['properties']['note'], {'type': 'string', 'description': 'x'})


class TestPrismaToZod(unittest.TestCase):
    """Test prisma-to-zod."""

    def setUp(self):
        result = convert('prisma-to-zod', BLOG_PRISMA)
        self.assertTrue(result.ok)
        self.output = result.output_text

    def test_enums_come_first(self):
        self.assertTrue(self.output.startswith('import { z } from "zod";\n\n// Generated from Prisma schema\n'))
        self.assertIn('export const RoleSchema = z.enum(["USER", "ADMIN", "MODERATOR"]);', self.output)
        self.assertLess(self.output.index('RoleSchema ='), self.output.index('UserSchema ='))

    def test_scalar_fields(self):
        self.assertIn('/** Application user */\nexport const UserSchema = z.object({\n', self.output)
        self.assertIn('  id: z.number().int(),\n', self.output)
        self.assertIn('  email: z.string().max(255).describe("Login address"),\n', self.output)
        self.assertIn('  age: z.number().int().nullable(),\n', self.output)
        self.assertIn('  role: RoleSchema.default("USER"),\n', self.output)
        self.assertIn('  balance: z.number(),\n', self.output)
        self.assertIn('  tags: z.array(z.string()),\n', self.output)
        self.assertIn('  settings: z.record(z.unknown()).nullable(),\n', self.output)
        self.assertIn('  published: z.boolean().default(false),\n', self.output)

    def test_database_timestamps_are_coerced(self):
        self.assertIn('  createdAt: z.coerce.date(),\n', self.output)
        self.assertIn('  updatedAt: z.coerce.date(),\n', self.output)

    def test_relation_fields_are_left_out(self):
        self.assertNotIn('posts:', self.output)
        self.assertNotIn('author:', self.output)
        self.assertIn('  authorId: z.number().int(),\n', self.output)
        self.assertNotIn('z.lazy', self.output)

    def test_create_input_omits_generated_fields(self):
        self.assertIn(
            '// Input schema\n'
            'export const UserCreateInputSchema = UserSchema.omit({ id: true, createdAt: true, updatedAt: true });\n'
            'export type UserCreateInput = z.infer<typeof UserCreateInputSchema>;\n',
            self.output,
        )
        self.assertIn('export const PostCreateInputSchema = PostSchema.omit({ id: true });', self.output)
        self.assertNotIn('RoleCreateInput', self.output)

    def test_create_input_without_generated_fields(self):
        output = convert('prisma-to-zod', 'model Tag {\n  name String @id\n}').output_text
        self.assertIn('export const TagCreateInputSchema = TagSchema;', output)

    def test_unsupported_type_degrades(self):
        result = convert('prisma-to-zod', 'model Place {\n  id Int @id\n  area Unsupported("polygon")?\n}')
        self.assertTrue(result.ok)
        self.assertIn('  area: z.unknown(),\n', result.output_text)
        self.assertEqual([w.code for w in result.warnings], ['W099'])

    def test_no_models(self):
        result = convert('prisma-to-zod', 'datasource db {\n  provider = "sqlite"\n}')
        self.assertEqual(result.diagnostic.code, 'E001')
        self.assertIn('Prisma models or enums', result.diagnostic.message)


class TestZodToPrompt(unittest.TestCase):
    """Test zod-to-prompt."""

    def setUp(self):
        result = convert('zod-to-prompt', PROFILE_ZOD)
        self.assertTrue(result.ok)
        self.output = result.output_text

    def test_sections(self):
        self.assertTrue(self.output.startswith('<system>\n<role>\n'))
        for tag in ('instructions', 'json_schema', 'example_output', 'constraints'):
            self.assertIn(f'<{tag}>\n', self.output)
            self.assertIn(f'</{tag}>\n', self.output)
        self.assertTrue(self.output.endswith('</system>\n'))

    def test_schema_lines(self):
        self.assertIn(
            '  - "fullName": [string] (REQUIRED): The user\'s first and last name'
            ' | Constraints: min: 1, max: 100\n',
            self.output,
        )
        self.assertIn('  - "email": [string] (REQUIRED): A valid email address'
                      ' | Constraints: must be a valid email\n', self.output)
        self.assertIn('  - "age": [number] (REQUIRED): Must be at least 18 years old'
                      ' | Constraints: min: 18, max: 150, must be an integer\n', self.output)
        self.assertIn('  - "role": [enum [ADMIN, USER, MODERATOR]] (REQUIRED)', self.output)
        self.assertIn('  - "tags": [array of string] (REQUIRED): List of interest tags\n', self.output)

    def test_optional_fields(self):
        self.assertIn('  - "bio": [string] (OPTIONAL): A short biography | Constraints: max: 500\n', self.output)
        self.assertIn('  - "isActive": [boolean] (OPTIONAL): No description provided.\n', self.output)

    def test_example_output(self):
        start = self.output.index('<example_output>\n') + len('<example_output>\n')
        end = self.output.index('\n</example_output>')
        self.assertEqual(json.loads(self.output[start:end]), {
            'fullName': '<fullName>',
            'email': '<email>',
            'age': 0,
            'role': 'ADMIN',
            'bio': '<bio>',
            'isActive': False,
            'tags': [],
        })

    def test_template_literal_description(self):
        output = convert('zod-to-prompt', 'const S = z.object({\n  name: z.string().describe(`User\'s name`),\n});').output_text
        self.assertIn('  - "name": [string] (REQUIRED): User\'s name\n', output)

    def test_nested_schema_and_modifiers(self):
        source = '''
const AddressSchema = z.object({ city: z.string() });
const PersonSchema = z.object({
  address: AddressSchema,
  nickname: z.string().nullable(),
  status: z.enum(['active', 'banned']).default('active'),
});
'''
        output = convert('zod-to-prompt', source).output_text
        self.assertIn('  - "address": [nested object] (REQUIRED)', output)
        self.assertIn('  - "nickname": [string] (OPTIONAL): No description provided. | Constraints: nullable\n', output)
        self.assertIn('  - "status": [enum [active, banned]] (REQUIRED): No description provided.'
                      ' | Constraints: default: "active"\n', output)
        self.assertIn('  "address": {\n    "city": "<city>"\n  },', output)

    def test_schema_without_object(self):
        result = convert('zod-to-prompt', 'const x = z.string()')
        self.assertEqual(result.diagnostic.code, 'E001')
        self.assertIn('z.object()', result.diagnostic.message)

    def test_object_without_fields(self):
        result = convert('zod-to-prompt', 'const x = z.object({})')
        self.assertEqual(result.diagnostic.code, 'E001')
        self.assertIn('could not detect any fields', result.diagnostic.message)


class TestTranspilerConfig(unittest.TestCase):
    """Test configuration loading and overrides."""

    def test_replace_keeps_other_values(self):
        config = replace(TranspilerConfig(), max_depth=5)
        self.assertEqual(config.max_depth, 5)
        self.assertEqual(config.max_input_length, 500_000)

    def test_invalid_values_rejected(self):
        with self.assertRaises(ValueError):
            TranspilerConfig(max_input_length=0)

    def test_unknown_keys_rejected(self):
        with self.assertRaises(ValueError):
            TranspilerConfig.from_dict({'max_depht': 3})

    def test_from_file(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = os.path.join(tmp, 'limits.json')
            with open(path, 'w') as f:
                json.dump({'indent': '    '}, f)
            config = TranspilerConfig.from_file(path, get_converter('ts-to-zod').config)
        self.assertEqual(config.indent, '    ')
        self.assertEqual(config.max_depth, 20)

    def test_indent_is_used_by_emitters(self):
        converter = get_converter('ts-to-zod', TranspilerConfig(indent='    '))
        output = converter.convert('interface A { x: string }').output_text
        self.assertIn('\n    x: z.string(),\n', output)


class TestCommandLine(unittest.TestCase):
    """Test the schema-transpiler entry point."""

    def test_list(self):
        with mock.patch('sys.stdout', new_callable=io.StringIO) as stdout:
            self.assertEqual(main(['--list']), 0)
        self.assertIn('sql-to-prisma', stdout.getvalue())

    def test_convert_file_to_stdout(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = os.path.join(tmp, 'types.ts')
            with open(path, 'w') as f:
                f.write('interface A { x: string }')
            with mock.patch('sys.stdout', new_callable=io.StringIO) as stdout:
                self.assertEqual(main(['ts-to-zod', path]), 0)
        self.assertIn('export const ASchema', stdout.getvalue())

    def test_fatal_diagnostic_exit_code(self):
        with mock.patch('sys.stdin', io.StringIO('')), \
                mock.patch('sys.stderr', new_callable=io.StringIO) as stderr:
            self.assertEqual(main(['sql-to-zod']), 1)
        self.assertIn('E001', stderr.getvalue())

    def test_unknown_converter(self):
        with mock.patch('sys.stderr', new_callable=io.StringIO):
            self.assertEqual(main(['nope-to-zod']), 2)


if __name__ == '__main__':
    unittest.main(verbosity=2)
